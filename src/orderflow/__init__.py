"""Orderflow: cart checkout, simulated payments and simulated shipping."""
