"""
Tracking helpers: identity cookies, device parsing, geolocation,
privacy hashing/encryption, Meta CAPI, campaign lookup and scan recording.
"""
