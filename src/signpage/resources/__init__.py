"""Packaged signature page and image template resources."""
