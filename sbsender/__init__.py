"""Simple message sending utility for Azure Service Bus queues."""

__version__ = "0.0.1"
