"""Library browsing: path validation and directory listing."""
