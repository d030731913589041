BUCKET = "a-bucket"

TRUST_ANCHOR = """-----BEGIN CERTIFICATE-----
MIIBfakeTrustAnchorForTests
-----END CERTIFICATE-----
"""
