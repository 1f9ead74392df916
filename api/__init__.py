"""api — HTTP routes, dependencies, middleware and error rendering."""
