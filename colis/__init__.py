"""Colis API: users, accounts and carrier profiles for a parcel-delivery platform."""
