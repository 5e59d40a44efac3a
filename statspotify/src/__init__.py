"""
Source package for statspotify.

Imports resolve as 'statspotify.src.<module>' from the repository root or an installed distribution.
"""
