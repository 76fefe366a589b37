import pytest

from stigmatized.services.signature_service import (
    AuthenticationError,
    require_valid_signature,
    select_signature_header,
    sign_body,
    verify_signature,
    verify_subscription,
)

SECRET = "app-secret"
BODY = b'{"object":"page","entry":[]}'


class TestVerifySignature:
    @pytest.mark.parametrize("algorithm", ["sha1", "sha256"])
    def test_valid_signature(self, algorithm):
        header = sign_body(BODY, SECRET, algorithm)
        assert header.startswith(f"{algorithm}=")
        assert verify_signature(BODY, header, SECRET) is True

    def test_known_digest(self):
        # HMAC-SHA1("key", "The quick brown fox jumps over the lazy dog")
        body = b"The quick brown fox jumps over the lazy dog"
        assert sign_body(body, "key") == "sha1=de7c9b85b8b78aa6bc8a7a36f70a90701c9db4d9"

    def test_wrong_secret(self):
        header = sign_body(BODY, "other-secret")
        assert verify_signature(BODY, header, SECRET) is False

    def test_any_body_byte_change_fails(self):
        header = sign_body(BODY, SECRET)
        for index in range(len(BODY)):
            mutated = bytearray(BODY)
            mutated[index] ^= 0x01
            assert verify_signature(bytes(mutated), header, SECRET) is False

    def test_any_header_char_change_fails(self):
        header = sign_body(BODY, SECRET)
        for index, char in enumerate(header):
            replacement = "0" if char != "0" else "1"
            mutated = header[:index] + replacement + header[index + 1 :]
            assert verify_signature(BODY, mutated, SECRET) is False

    def test_uppercase_digest_fails(self):
        header = sign_body(BODY, SECRET)
        assert verify_signature(BODY, header.upper(), SECRET) is False

    @pytest.mark.parametrize("header", [None, "", "sha1", "sha1=", "=abc", "md5=abcdef", "sha1=é"])
    def test_malformed_header(self, header):
        assert verify_signature(BODY, header, SECRET) is False

    def test_empty_secret_never_verifies(self):
        header = sign_body(BODY, "")
        assert verify_signature(BODY, header, "") is False


class TestRequireValidSignature:
    def test_missing_header(self):
        with pytest.raises(AuthenticationError) as exc_info:
            require_valid_signature(BODY, None, SECRET)
        assert exc_info.value.missing is True

    def test_invalid_header(self):
        with pytest.raises(AuthenticationError) as exc_info:
            require_valid_signature(BODY, "sha1=" + "0" * 40, SECRET)
        assert exc_info.value.missing is False

    def test_valid_header(self):
        require_valid_signature(BODY, sign_body(BODY, SECRET), SECRET)


class TestSelectSignatureHeader:
    def test_prefers_sha256(self):
        headers = {"x-hub-signature": "sha1=aa", "x-hub-signature-256": "sha256=bb"}
        assert select_signature_header(headers) == "sha256=bb"

    def test_falls_back_to_sha1(self):
        assert select_signature_header({"x-hub-signature": "sha1=aa"}) == "sha1=aa"

    def test_none_present(self):
        assert select_signature_header({}) is None


class TestVerifySubscription:
    def test_matching_token_returns_challenge(self):
        assert verify_subscription("subscribe", "token", "12345", "token") == "12345"

    def test_missing_challenge_returns_empty(self):
        assert verify_subscription("subscribe", "token", None, "token") == ""

    def test_wrong_token(self):
        assert verify_subscription("subscribe", "nope", "12345", "token") is None

    def test_wrong_mode(self):
        assert verify_subscription("unsubscribe", "token", "12345", "token") is None

    def test_missing_token(self):
        assert verify_subscription("subscribe", None, "12345", "token") is None
