"""
Backend services used by the Retrofit frontends.
"""
