"""Unit tests for app.core.security: shop domain normalization and session JWTs."""

import unittest

import jwt

from app.core.security import create_access_token, decode_access_token, normalize_shop_domain


class TestNormalizeShopDomain(unittest.TestCase):
    def test_valid_domains(self) -> None:
        self.assertEqual(normalize_shop_domain("Example.myshopify.com"), "example.myshopify.com")
        self.assertEqual(normalize_shop_domain(" https://my-shop.myshopify.com/ "), "my-shop.myshopify.com")

    def test_invalid_domains(self) -> None:
        for raw in (None, "", "example.com", "-bad.myshopify.com", "a.b.myshopify.com", "x.myshopify.com.evil.io"):
            self.assertIsNone(normalize_shop_domain(raw), raw)


class TestAccessToken(unittest.TestCase):
    def test_round_trip_sub_is_shop(self) -> None:
        token = create_access_token("example.myshopify.com")
        payload = decode_access_token(token)
        self.assertEqual(payload["sub"], "example.myshopify.com")
        self.assertIn("exp", payload)

    def test_tampered_token_rejected(self) -> None:
        token = create_access_token("example.myshopify.com")
        with self.assertRaises(jwt.PyJWTError):
            decode_access_token(token[:-2] + ("AA" if not token.endswith("AA") else "BB"))


if __name__ == "__main__":
    unittest.main()
