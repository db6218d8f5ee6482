"""Chunk aggregation and merge executors"""
