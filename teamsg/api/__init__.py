"""HTTP surface for the strokes-gained engine."""
