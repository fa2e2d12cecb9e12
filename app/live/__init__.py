"""Client-side live recognition loop."""
