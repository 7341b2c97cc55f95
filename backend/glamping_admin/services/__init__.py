"""Service layer: pricing, discounts, tax, balances and reporting."""
