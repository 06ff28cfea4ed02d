"""ZeroK Vault Meta information.
   ZeroK Vault is a client-held password vault: the server only ever sees ciphertext.
"""
__title__ = 'zerok_vault'
__description__ = (
   'Zero-knowledge password vault client: key derivation, '
   'envelope encryption and encrypted item storage.'
)
__version__ = '0.3.0'
__copyright__ = 'Copyright (c) 2026 ZeroK Vault Authors'
__author__ = 'ZeroK Vault Authors'
__license__ = 'Apache-2.0'
