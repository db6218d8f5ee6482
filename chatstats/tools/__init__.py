"""Benchmarking and plotting tools"""
