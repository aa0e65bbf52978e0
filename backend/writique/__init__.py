"""
Writique blogging platform API.
"""
