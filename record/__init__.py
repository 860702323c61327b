"""Session recording, export and offline video tools."""
