"""
CLI frontend for Retrofit
"""
