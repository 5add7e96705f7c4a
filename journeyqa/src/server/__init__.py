"""HTTP authoring API and background runs."""
