"""
Data Components

Sector reference tables, sector override storage and trade history loading.
"""
