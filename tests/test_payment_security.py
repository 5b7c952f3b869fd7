import hashlib
import hmac

from storefront.payment_security import (
    constant_time_compare,
    create_payment_signature,
    verify_payment_signature,
)

SECRET = "rzp_secret_abc"
ORDER_ID = "order_N5Fg1aB2c3D4e5"
PAYMENT_ID = "pay_N5FgX9y8Z7w6V5"


def _expected(order_id, payment_id, secret):
    return hmac.new(secret.encode(), f"{order_id}|{payment_id}".encode(), hashlib.sha256).hexdigest()


class TestCreatePaymentSignature:
    def test_matches_hmac_sha256_over_order_and_payment(self):
        assert create_payment_signature(ORDER_ID, PAYMENT_ID, SECRET) == _expected(ORDER_ID, PAYMENT_ID, SECRET)

    def test_is_lowercase_hex(self):
        signature = create_payment_signature(ORDER_ID, PAYMENT_ID, SECRET)
        assert len(signature) == 64
        assert signature == signature.lower()
        int(signature, 16)


class TestVerifyPaymentSignature:
    def test_valid_signature(self):
        signature = create_payment_signature(ORDER_ID, PAYMENT_ID, SECRET)
        assert verify_payment_signature(ORDER_ID, PAYMENT_ID, signature, SECRET) is True

    def test_any_single_character_change_fails(self):
        signature = create_payment_signature(ORDER_ID, PAYMENT_ID, SECRET)
        for i in range(len(signature)):
            replacement = "0" if signature[i] != "0" else "1"
            tampered = signature[:i] + replacement + signature[i + 1:]
            assert verify_payment_signature(ORDER_ID, PAYMENT_ID, tampered, SECRET) is False

    def test_uppercase_signature_is_not_accepted(self):
        signature = create_payment_signature(ORDER_ID, PAYMENT_ID, SECRET).upper()
        assert verify_payment_signature(ORDER_ID, PAYMENT_ID, signature, SECRET) is False

    def test_wrong_secret_fails(self):
        signature = create_payment_signature(ORDER_ID, PAYMENT_ID, "another_secret")
        assert verify_payment_signature(ORDER_ID, PAYMENT_ID, signature, SECRET) is False

    def test_swapped_ids_fail(self):
        signature = create_payment_signature(ORDER_ID, PAYMENT_ID, SECRET)
        assert verify_payment_signature(PAYMENT_ID, ORDER_ID, signature, SECRET) is False

    def test_missing_inputs_fail_closed(self):
        signature = create_payment_signature(ORDER_ID, PAYMENT_ID, SECRET)
        assert verify_payment_signature(ORDER_ID, PAYMENT_ID, signature, "") is False
        assert verify_payment_signature(ORDER_ID, PAYMENT_ID, signature, None) is False
        assert verify_payment_signature(ORDER_ID, PAYMENT_ID, "", SECRET) is False
        assert verify_payment_signature("", PAYMENT_ID, signature, SECRET) is False
        assert verify_payment_signature(ORDER_ID, None, signature, SECRET) is False

    def test_non_ascii_signature_does_not_raise(self):
        assert verify_payment_signature(ORDER_ID, PAYMENT_ID, "é" * 64, SECRET) is False


class TestConstantTimeCompare:
    def test_equal(self):
        assert constant_time_compare("abc", "abc") is True

    def test_different(self):
        assert constant_time_compare("abc", "abd") is False

    def test_empty_is_never_equal(self):
        assert constant_time_compare("", "") is False
