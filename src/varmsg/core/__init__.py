"""Core domain package for varmsg.

Core contains query building, variable set resolution, scheduling and
rendering without any store or transport specific code.
"""
