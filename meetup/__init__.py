"""Fair Meetup - venue recommendations that balance travel time across a group."""

__version__ = "0.1.0"
