"""Terminal rendering for VibeLog results."""
