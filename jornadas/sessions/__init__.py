"""Sessions module — raw punches paired into work sessions."""
