"""Material Scout: multi-source material search and requirement validation."""
