"""Whisper Vault Meta information.
   Whisper Vault stores one-time, self-destructing encrypted secrets.
"""
__title__ = 'whisper_vault'
__description__ = (
   'Whisper Vault stores one-time secret messages that are '
   'destroyed after the first read or when they expire.'
)
__version__ = '0.1.0'
__copyright__ = 'Copyright (c) 2026 Whisper Vault Authors'
__author__ = 'Whisper Vault Authors'
__author_email__ = 'whisper-vault@users.noreply.github.com'
__license__ = 'Apache-2.0'
__url__ = 'https://github.com/whisper-vault/whisper-vault'
