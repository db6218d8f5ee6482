"""Job planning, metrics and the statistics pipeline driver"""
