"""Blog API: articles, series, tags and moderated threaded comments."""
