"""Core primitives: request descriptors, outcomes, the resilient executor,
logging, and the exception hierarchy."""
