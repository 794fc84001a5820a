"""Verification code generation."""

import secrets

CODE_LENGTH = 6
_LOWEST_CODE = 10 ** (CODE_LENGTH - 1)


class CodeGenerator:
    """
    Produces one-time numeric verification codes.

    Codes are drawn uniformly from 100000-999999 with the secrets CSPRNG,
    so they never carry a leading zero and cannot be predicted from
    earlier outputs.
    """

    def generate(self) -> str:
        return str(_LOWEST_CODE + secrets.randbelow(9 * _LOWEST_CODE))
