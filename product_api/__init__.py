"""Product CRUD API with Elasticsearch-backed structured logging."""
