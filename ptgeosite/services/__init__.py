"""
Services Package

Backend API clients, tracker URL classification, the shared domain set,
GeoSite encoding, the exception taxonomy and structured logging.
"""
