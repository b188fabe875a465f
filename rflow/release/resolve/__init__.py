"""Input resolution: merge event document to ReleaseContext."""
