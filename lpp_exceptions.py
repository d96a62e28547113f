"""
lpp_exceptions.py

Zentrale Exception-Hierarchie für das LPP-System.
Definiert spezialisierte Exception-Klassen für die Fehlerszenarien des
Rätselkerns.

Exception-Hierarchie:
    LPPException (Basis)
    ├── PuzzleStateError
    ├── ReasoningException
    │   ├── DerivationError
    │   └── UnknownFactError
    ├── HintSessionError
    └── ConfigurationException
        └── InvalidConfigError

Verstöße gegen Hinweise sind KEINE Exceptions: der Validator liefert sie als
normales Abfrageergebnis (ValidationResult.violated).

Verwendung:
    from lpp_exceptions import DerivationError

    try:
        state, step = rule.apply(state, registry, step_number)
    except DerivationError as e:
        logger.error(f"Ableitung fehlgeschlagen: {e}")
        logger.error(f"Kontext: {e.context}")
"""

from typing import Any, Dict, Optional


class LPPException(Exception):
    """
    Basis-Exception für alle LPP-spezifischen Fehler.

    Alle LPP-Exceptions unterstützen:
    - Detaillierte Fehlermeldungen
    - Kontextuelle Informationen (dict)
    - Original-Exception-Verkettung
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.message = message
        self.context = context or {}
        self.original_exception = original_exception

    def __str__(self) -> str:
        base_msg = self.message

        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            base_msg += f" | Context: {context_str}"

        if self.original_exception:
            base_msg += f" | Caused by: {type(self.original_exception).__name__}: {str(self.original_exception)}"

        return base_msg

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message={self.message!r}, context={self.context!r})"


# ============================================================================
# STATE EXCEPTIONS
# ============================================================================


class PuzzleStateError(LPPException):
    """
    Ungültige Änderung an einem PuzzleState.

    Ursachen:
    - Unbekannter Student, unbekannte Sprache oder Aufgabenart
    - Mehr als drei Aufgabenarten für einen Studenten
    """

    def __init__(self, message: str, student: Optional[str] = None, **kwargs):
        context = kwargs.get("context", {})
        context["student"] = student
        kwargs["context"] = context
        super().__init__(message, **kwargs)


# ============================================================================
# REASONING EXCEPTIONS
# ============================================================================


class ReasoningException(LPPException):
    """Basis-Exception für Fehler in der Ableitungskette."""


class DerivationError(ReasoningException):
    """
    Ein Ableitungsschritt konnte nicht angewendet werden.

    Ursachen:
    - Vorbedingung des Schritts gilt im aktuellen Zustand nicht
    - Pipeline hat die falsche Länge oder Reihenfolge
    - Unerwarteter Fehler während der Anwendung (verkettet)
    """

    def __init__(self, message: str, fact_id: Optional[str] = None, **kwargs):
        context = kwargs.get("context", {})
        context["fact_id"] = fact_id
        kwargs["context"] = context
        super().__init__(message, **kwargs)
        self.fact_id = fact_id


class UnknownFactError(ReasoningException):
    """
    Ein zitierter abgeleiteter Fakt (D<n>) fehlt in der Fakten-Registry.
    """

    def __init__(self, message: str, fact_id: Optional[str] = None, **kwargs):
        context = kwargs.get("context", {})
        context["fact_id"] = fact_id
        kwargs["context"] = context
        super().__init__(message, **kwargs)
        self.fact_id = fact_id


# ============================================================================
# INTERACTIVE EXCEPTIONS
# ============================================================================


class HintSessionError(LPPException):
    """
    Fehler im interaktiven Hinweis-Modus.

    Ursachen:
    - Alle Hinweise wurden bereits angewendet
    - Nichts zum Rückgängigmachen vorhanden
    - Lösung konnte nicht berechnet werden
    """


# ============================================================================
# CONFIGURATION EXCEPTIONS
# ============================================================================


class ConfigurationException(LPPException):
    """Basis-Exception für Konfigurationsfehler."""


class InvalidConfigError(ConfigurationException):
    """
    Ungültige Konfiguration.

    Ursachen:
    - Cache-Policy mit nicht-positiver Größe oder TTL
    - Inkonsistente Konstanten
    """


# ============================================================================
# UTILITY FUNCTIONS
# ============================================================================


def wrap_exception(
    exc: Exception, lpp_exception_class: type, message: str, **context
) -> LPPException:
    """
    Wandelt eine generische Exception in eine LPP-spezifische Exception um.

    Args:
        exc: Original-Exception
        lpp_exception_class: Ziel-Exception-Klasse (z.B. DerivationError)
        message: Benutzerdefinierte Fehlermeldung
        **context: Zusätzliche Kontextinformationen

    Returns:
        LPP-spezifische Exception mit Original-Exception verkettet

    Beispiel:
        try:
            rule.apply(state, registry, 6)
        except KeyError as e:
            raise wrap_exception(e, DerivationError, "Schritt fehlgeschlagen", step=6)
    """
    return lpp_exception_class(
        message=message, context=context, original_exception=exc
    )


def get_user_friendly_message(exc: Exception, include_details: bool = False) -> str:
    """
    Generiert eine benutzerfreundliche Fehlermeldung aus einer Exception.

    Args:
        exc: Exception-Objekt
        include_details: Ob technische Details angezeigt werden sollen

    Returns:
        Benutzerfreundliche Fehlermeldung
    """
    friendly_messages = {
        PuzzleStateError: "[ERROR] This move is not allowed in the current puzzle state.",
        DerivationError: "[ERROR] The solver could not complete the derivation.",
        UnknownFactError: "[ERROR] A derivation step cited a fact that was never derived.",
        HintSessionError: "[INFO] No further hint is available.",
        InvalidConfigError: "[ERROR] Invalid configuration. Please check the settings.",
    }

    default_message = "[ERROR] An unexpected error occurred."

    user_message = friendly_messages.get(type(exc), default_message)

    if isinstance(exc, DerivationError) and exc.fact_id:
        user_message = (
            f"[ERROR] The solver could not derive {exc.fact_id}. "
            "The derivation was aborted."
        )

    if include_details and isinstance(exc, LPPException):
        user_message += f"\n\nDetails: {exc.message}"
        if exc.context:
            user_message += f"\n   Context: {exc.context}"

    return user_message
