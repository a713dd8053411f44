"""BrokerDesk - claim status workflow and approval threshold engine."""

__version__ = "1.0.0"
