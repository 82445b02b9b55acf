"""Tag index page generator for Jekyll-style blogs."""
