"""Command-line client"""
