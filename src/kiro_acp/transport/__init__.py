"""Transport layer: the ACP stdio agent."""
