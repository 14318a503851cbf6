"""
bannerscrape – course section scraper for the UVic Banner registration system.
"""
