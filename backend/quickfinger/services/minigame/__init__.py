"""Pure scoring helpers for the slider minigame."""
