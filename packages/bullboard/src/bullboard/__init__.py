"""bullboard - live dashboard over Bull / BullMQ queues discovered in Redis."""

__version__ = "0.1.0"
