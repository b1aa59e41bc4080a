"""
Mensa facility information service.
"""
