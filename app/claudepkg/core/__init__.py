"""Core building blocks: paths, configuration, privileges, workspace."""
