"""Cross-context plumbing: settings, auth, error taxonomy and response envelope."""
