"""
Achievement program (Anchor) encoding: mint_achievement instruction and
AchievementMinted event.

- Instruction discriminator = first 8 bytes of sha256("global:mint_achievement").
- Event discriminator = first 8 bytes of sha256("event:AchievementMinted"); events
  are emitted as base64 "Program data: ..." log lines.
- Args are Borsh: string = u32 LE length + UTF-8 bytes, u64 = 8 bytes LE.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import json
import re
import struct
from typing import Any

from solders.instruction import AccountMeta, Instruction
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from achievement_minter.achievement_logging import get_logger
from achievement_minter.chain.client import ChainEvent
from achievement_minter.core.exceptions import ConfigurationError

logger = get_logger(__name__)

MINT_ACHIEVEMENT_DISCRIMINATOR = hashlib.sha256(b"global:mint_achievement").digest()[:8]
ACHIEVEMENT_MINTED_EVENT = "AchievementMinted"
ACHIEVEMENT_MINTED_DISCRIMINATOR = hashlib.sha256(b"event:AchievementMinted").digest()[:8]
SYS_PROGRAM_ID_STR = "11111111111111111111111111111111"
COLLECTION_SEED = b"collection"
PROGRAM_DATA_PREFIX = "Program data: "
_INVOKE_RE = re.compile(r"^Program ([1-9A-HJ-NP-Za-km-z]+) invoke \[\d+\]$")
_EXIT_RE = re.compile(r"^Program ([1-9A-HJ-NP-Za-km-z]+) (success|failed)")

# Minimal Anchor IDL for the achievement program. Used to validate args by name.
ACHIEVEMENT_IDL = {
    "version": "0.1.0",
    "name": "achievement_collection",
    "instructions": [
        {
            "name": "mint_achievement",
            "discriminator": list(MINT_ACHIEVEMENT_DISCRIMINATOR),
            "accounts": [
                {"name": "achievement", "writable": True, "signer": True},
                {"name": "collection", "writable": True, "signer": False},
                {"name": "recipient", "writable": False, "signer": False},
                {"name": "authority", "writable": True, "signer": True},
                {"name": "system_program", "writable": False, "signer": False},
            ],
            "args": [
                {"name": "description", "type": "string"},
                {"name": "user_info", "type": "string"},
                {"name": "completion_timestamp", "type": "u64"},
            ],
        },
    ],
    "events": [
        {
            "name": ACHIEVEMENT_MINTED_EVENT,
            "discriminator": list(ACHIEVEMENT_MINTED_DISCRIMINATOR),
            "fields": [
                {"name": "token_id", "type": "u64"},
                {"name": "recipient", "type": "pubkey"},
                {"name": "completion_timestamp", "type": "u64"},
            ],
        },
    ],
}

U64_MAX = 2**64 - 1
# 8 discriminator + 8 token_id + 32 recipient; completion_timestamp is optional
ACHIEVEMENT_MINTED_MIN_LEN = 8 + 8 + 32


def load_keypair(private_key: str) -> Keypair:
    """Load Keypair from MINTER_PRIVATE_KEY: base58 string or JSON array of 64 bytes."""
    raw = (private_key or "").strip()
    if not raw:
        raise ConfigurationError("MINTER_PRIVATE_KEY must be set")
    if raw.startswith("["):
        try:
            arr = json.loads(raw)
            if len(arr) >= 64:
                return Keypair.from_bytes(bytes(arr[:64]))
        except (json.JSONDecodeError, TypeError, ValueError) as e:
            raise ConfigurationError("Invalid MINTER_PRIVATE_KEY byte array") from e
        raise ConfigurationError("MINTER_PRIVATE_KEY byte array must hold 64 bytes")
    try:
        return Keypair.from_base58_string(raw)
    except Exception as e:
        logger.warning("minter_keypair_load_failed", error=str(e))
        raise ConfigurationError("Invalid MINTER_PRIVATE_KEY") from e


def _borsh_string(value: str) -> bytes:
    encoded = value.encode("utf-8")
    return struct.pack("<I", len(encoded)) + encoded


def get_collection_pda(program_id: Pubkey) -> Pubkey:
    """Collection counter PDA. Seeds: [b'collection']."""
    pda, _ = Pubkey.find_program_address([COLLECTION_SEED], program_id)
    return pda


def build_mint_achievement_instruction(
    program_id: Pubkey,
    authority: Pubkey,
    achievement: Pubkey,
    recipient: Pubkey,
    description: str,
    user_info: str,
    completion_timestamp_ms: int,
    *,
    idl: dict[str, Any] | None = None,
) -> Instruction:
    """
    Build mint_achievement from the IDL layout: discriminator + description + user_info
    + completion_timestamp (u64). achievement is a fresh keypair's pubkey that signs
    the transaction; authority pays and signs.
    """
    idl = idl or ACHIEVEMENT_IDL
    ix_def = next((i for i in idl.get("instructions", []) if i.get("name") == "mint_achievement"), None)
    if not ix_def:
        raise ValueError("IDL missing mint_achievement instruction")
    if not 0 <= int(completion_timestamp_ms) <= U64_MAX:
        raise ValueError("completion_timestamp out of u64 range")

    data = bytearray(MINT_ACHIEVEMENT_DISCRIMINATOR)
    data += _borsh_string(description)
    data += _borsh_string(user_info)
    data += struct.pack("<Q", int(completion_timestamp_ms))

    accounts = [
        AccountMeta(pubkey=achievement, is_signer=True, is_writable=True),
        AccountMeta(pubkey=get_collection_pda(program_id), is_signer=False, is_writable=True),
        AccountMeta(pubkey=recipient, is_signer=False, is_writable=False),
        AccountMeta(pubkey=authority, is_signer=True, is_writable=True),
        AccountMeta(pubkey=Pubkey.from_string(SYS_PROGRAM_ID_STR), is_signer=False, is_writable=False),
    ]
    return Instruction(program_id=program_id, data=bytes(data), accounts=accounts)


def decode_achievement_minted(payload: bytes) -> dict[str, Any] | None:
    """
    Decode AchievementMinted event bytes (discriminator included).
    Returns {token_id, recipient, completion_timestamp?} or None if not this event.
    """
    if payload is None or len(payload) < ACHIEVEMENT_MINTED_MIN_LEN:
        return None
    if payload[:8] != ACHIEVEMENT_MINTED_DISCRIMINATOR:
        return None
    (token_id,) = struct.unpack_from("<Q", payload, 8)
    recipient = Pubkey.from_bytes(payload[16:48])
    out: dict[str, Any] = {"token_id": token_id, "recipient": str(recipient)}
    if len(payload) >= ACHIEVEMENT_MINTED_MIN_LEN + 8:
        (out["completion_timestamp"],) = struct.unpack_from("<Q", payload, 48)
    return out


def parse_program_events(log_messages: list[str] | tuple[str, ...], program_id: str) -> list[ChainEvent]:
    """
    Scan transaction logs for AchievementMinted events emitted by program_id.

    Tracks the "Program X invoke [n]" / "Program X success" stack so data lines
    logged by other programs in the same transaction are ignored. Lines that do
    not decode are skipped.
    """
    events: list[ChainEvent] = []
    stack: list[str] = []
    for line in log_messages or ():
        if not isinstance(line, str):
            continue
        invoke = _INVOKE_RE.match(line)
        if invoke:
            stack.append(invoke.group(1))
            continue
        if _EXIT_RE.match(line):
            if stack:
                stack.pop()
            continue
        if not line.startswith(PROGRAM_DATA_PREFIX):
            continue
        current = stack[-1] if stack else None
        if current is not None and current != program_id:
            continue
        try:
            payload = base64.b64decode(line[len(PROGRAM_DATA_PREFIX):].strip(), validate=True)
            decoded = decode_achievement_minted(payload)
        except (binascii.Error, ValueError, struct.error) as e:
            logger.debug("chain_event_decode_skipped", error=str(e))
            continue
        if decoded is not None:
            events.append(ChainEvent(name=ACHIEVEMENT_MINTED_EVENT, program_id=current, data=decoded))
    return events


def find_minted_token_id(events: list[ChainEvent]) -> str | None:
    """Token id of the first AchievementMinted event, or None."""
    for event in events:
        if event.name == ACHIEVEMENT_MINTED_EVENT and event.data.get("token_id") is not None:
            return str(event.data["token_id"])
    return None
