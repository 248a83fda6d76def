"""HTTP surface of the App Tracking System API."""
