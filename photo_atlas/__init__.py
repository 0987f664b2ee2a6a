"""Photo Atlas: ingest geotagged photos into a normalized image/coordinate/location store."""
