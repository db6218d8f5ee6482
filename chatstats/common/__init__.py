"""Shared data model, errors and text processing"""
