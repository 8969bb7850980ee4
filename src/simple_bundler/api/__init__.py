"""HTTP API for the bundle admin and platform callbacks."""
