"""Route optimization and itinerary construction engine."""
