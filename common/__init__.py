"""
Shared pieces for the correlator: error taxonomy, data types, JSON logging, small helpers.
"""
