"""core — sync engine, webhook verification, errors and start-up primitives."""
