"""Report persistence: CSV files and MongoDB report collections."""
