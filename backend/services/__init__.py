"""Service layer: validation, deck/card mutations and AI card generation."""
