"""Core modules for the Moonlight Ledger application."""

from . import aggregate, config, correlate, errors, filters, insights, models, moods, store, synth, utils, viz

__all__ = [
	"aggregate",
	"config",
	"correlate",
	"errors",
	"filters",
	"insights",
	"models",
	"moods",
	"store",
	"synth",
	"utils",
	"viz",
]
