"""Serial monitor support for sketchbridge."""
