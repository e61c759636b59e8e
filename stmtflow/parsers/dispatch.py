"""Select the provider grammar for a statement and run it."""

from dataclasses import dataclass

from stmtflow.models import ProviderId
from stmtflow.parsers.document_types import RawDocument
from stmtflow.parsers.kotak import parse_kotak
from stmtflow.parsers.phonepe import parse_phonepe
from stmtflow.parsers.validation import GrammarResult, logger

# Providers declared by callers but without a grammar of their own yet.
STUB_PROVIDERS = frozenset(
    {ProviderId.GOOGLEPAY, ProviderId.BHIM_UPI, ProviderId.PAYTM, ProviderId.BANK_STATEMENT}
)


@dataclass(frozen=True)
class WalletGrammar:
    """Multi-line wallet statements (PhonePe)."""

    provider: str = ProviderId.PHONEPE.value


@dataclass(frozen=True)
class BankGrammar:
    """Row-oriented bank statements (Kotak)."""

    provider: str = ProviderId.KOTAK_BANK.value


@dataclass(frozen=True)
class Fallback:
    """A provider with no grammar; parsed with the wallet grammar."""

    provider: str
    reason: str


Grammar = WalletGrammar | BankGrammar | Fallback


def _provider_name(provider: ProviderId | str | None) -> str:
    if isinstance(provider, ProviderId):
        return provider.value
    return (provider or "").strip().upper()


def resolve_grammar(provider: ProviderId | str | None) -> Grammar:
    """Map a declared provider to the grammar that will parse its statements."""
    name = _provider_name(provider)

    if name == ProviderId.PHONEPE.value:
        return WalletGrammar()
    if name == ProviderId.KOTAK_BANK.value:
        return BankGrammar()
    if name in {stub.value for stub in STUB_PROVIDERS}:
        return Fallback(name, f"{name} parsing not yet implemented, falling back to PhonePe parsing")
    return Fallback(name, f"Unsupported statement type: {name or '(none)'}, falling back to PhonePe parsing")


def parse_document(document: RawDocument, provider: ProviderId | str | None) -> GrammarResult:
    """
    Run the provider's grammar over a routed document.

    Fallback providers get the wallet grammar's transactions plus one warning
    naming the fallback.
    """
    grammar = resolve_grammar(provider)

    if isinstance(grammar, BankGrammar):
        return parse_kotak(document)

    if isinstance(grammar, Fallback):
        logger.warning(grammar.reason)
        result = GrammarResult(warnings=[grammar.reason])
        result.extend(parse_phonepe(document))
        return result

    return parse_phonepe(document)
