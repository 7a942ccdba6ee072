"""Adversarial queueing theory simulator.

Packets are injected into a network of edge buffers and forwarded hop by hop along
preassigned paths under a forwarding protocol, so that queue growth can be measured for
different protocols and injection patterns.
"""
