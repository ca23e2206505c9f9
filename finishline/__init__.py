"""Finishline: marathon result lookup across timing platforms."""
