"""Index structures and the playback engine."""
