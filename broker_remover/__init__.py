"""Open Broker Remover: find data brokers that likely hold your data and track opt-out requests."""
