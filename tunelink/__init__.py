"""tunelink: social music backend core."""
