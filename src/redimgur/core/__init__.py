"""Record validation, lookup and batch import logic."""
