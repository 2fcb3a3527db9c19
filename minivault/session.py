"""Wallet session: lifecycle and send state machine.

The session owns the single in-memory custody slot, the active network and
the user-visible status. UI code calls its operations and re-renders from
its properties or from SessionCallback notifications.
"""

from __future__ import annotations

import asyncio
import dataclasses
import io
from collections.abc import Coroutine, Mapping
from decimal import Decimal
from time import time
from typing import TYPE_CHECKING, Any

import segno
from loguru import logger

from minivault import networks
from minivault.callbacks import SessionCallback
from minivault.exceptions import (
    BackendError,
    ConfirmationError,
    DecryptError,
    GenerationError,
    NetworkError,
    PasswordTooShortError,
    ValidationError,
)
from minivault.interfaces.backend import BackupBackend
from minivault.interfaces.gateway import ChainGateway
from minivault.interfaces.identity import IdentityProvider
from minivault.models import (
    Account,
    HostIdentity,
    NetworkProfile,
    Status,
    StatusLevel,
    TransferIntent,
    TransferRecord,
    TransferStatus,
    WalletKeyMaterial,
    WalletState,
)
from minivault.persistence import TransferLogger
from minivault.storage import LocalKeystoreStore
from minivault.units import format_amount, to_smallest_unit, validate_address
from minivault.wallet import KeyCustody, keystore_address

if TYPE_CHECKING:
    from minivault.config import Settings


class WalletSession:
    """State machine driving wallet creation, unlocking, backup and transfers.

    States: NO_WALLET -> CREATING/UNLOCKING -> ACTIVE <-> SENDING, and back
    to NO_WALLET on delete(). Operations return True on success and False
    otherwise; failures never raise; they are reported through ``status``.

    The decrypted key lives only in this object. It is never written
    anywhere and is dropped on delete() or when the session is discarded.

    Example:
        session = WalletSession(store=store, gateway=gateway)
        if await session.create("secret1"):
            print(session.mnemonic)  # show once, then acknowledge
            session.acknowledge_mnemonic()
        await session.send("0x742d35Cc6634C0532925a3b844Bc9e7595f9211F", "0.01")
        await session.close()
    """

    def __init__(
        self,
        store: LocalKeystoreStore,
        gateway: ChainGateway,
        custody: KeyCustody | None = None,
        backend: BackupBackend | None = None,
        identity_provider: IdentityProvider | None = None,
        transfer_logger: TransferLogger | None = None,
        network_key: str | None = None,
        min_password_length: int = 6,
        rpc_overrides: Mapping[str, str] | None = None,
        confirmation_timeout: float | None = None,
    ) -> None:
        """Initialize the session.

        Args:
            store: Local single-slot keystore store.
            gateway: Chain gateway for balances and transfers.
            custody: Key generation and keystore encryption. Defaults to KeyCustody().
            backend: Hosted backend. When set, wallet creation requires a
                     verified account with a username and is backed up remotely.
            identity_provider: Host shell identity, read once here.
            transfer_logger: Optional JSONL audit log of transfers.
            network_key: Initial network (unknown keys use the default).
            min_password_length: Minimum wallet password length.
            rpc_overrides: Network key -> RPC URL replacements.
            confirmation_timeout: Bound for confirmation waits; None waits
                                  until the transaction is mined or dropped.
        """
        self._store = store
        self._gateway = gateway
        self._custody = custody or KeyCustody()
        self._backend = backend
        self._transfer_logger = transfer_logger
        self._min_password_length = min_password_length
        self._rpc_overrides = dict(rpc_overrides or {})
        self._confirmation_timeout = confirmation_timeout

        self._identity: HostIdentity | None = (
            identity_provider.get_identity() if identity_provider is not None else None
        )
        self._profile = networks.resolve(network_key, self._rpc_overrides)

        self._state = WalletState.NO_WALLET
        self._wallet: WalletKeyMaterial | None = None
        self._account: Account | None = None
        self._status = Status()
        self._balance: Decimal | None = None
        self._intent = TransferIntent()
        self._transfers: dict[str, TransferRecord] = {}
        self._last_tx_hash: str | None = None

        # Double-submit guard for send()
        self._submitting = False
        self._remote_lock = asyncio.Lock()
        self._tasks: set[asyncio.Task[Any]] = set()
        self._callbacks: list[SessionCallback] = []

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        identity_provider: IdentityProvider | None = None,
    ) -> WalletSession:
        """Build a session with the default collaborators from settings."""
        from minivault.backend import SupabaseBackend
        from minivault.config import get_settings
        from minivault.gateway import EvmGateway

        settings = settings or get_settings()
        wallet_config = settings.wallet

        backend = (
            SupabaseBackend(settings.backend) if settings.backend.enabled else None
        )
        transfer_logger = (
            TransferLogger(wallet_config.data_dir / "transfers")
            if wallet_config.transfer_log
            else None
        )

        return cls(
            store=LocalKeystoreStore(wallet_config.data_dir, wallet_config.storage_key),
            gateway=EvmGateway(settings.rpc),
            custody=KeyCustody(wallet_config.kdf, wallet_config.kdf_iterations),
            backend=backend,
            identity_provider=identity_provider,
            transfer_logger=transfer_logger,
            network_key=wallet_config.default_network,
            min_password_length=wallet_config.min_password_length,
            rpc_overrides=wallet_config.rpc_overrides,
            confirmation_timeout=settings.rpc.confirmation_timeout,
        )

    # =========================================================================
    # Observable state
    # =========================================================================

    @property
    def state(self) -> WalletState:
        return self._state

    @property
    def is_active(self) -> bool:
        """Whether a wallet is unlocked in memory."""
        return self._wallet is not None

    @property
    def address(self) -> str | None:
        return self._wallet.address if self._wallet else None

    @property
    def mnemonic(self) -> str | None:
        """Recovery phrase of a just-created wallet, until acknowledged."""
        return self._wallet.mnemonic if self._wallet else None

    @property
    def profile(self) -> NetworkProfile:
        """The active network."""
        return self._profile

    @property
    def account(self) -> Account | None:
        return self._account

    @property
    def identity(self) -> HostIdentity | None:
        return self._identity

    @property
    def status(self) -> Status:
        return self._status

    @property
    def balance(self) -> Decimal | None:
        """Last fetched balance on the active network, in display units."""
        return self._balance

    @property
    def balance_display(self) -> str:
        """Balance rounded for display, or an em dash when unknown."""
        if self._balance is None:
            return "—"
        return format_amount(self._balance)

    @property
    def intent(self) -> TransferIntent:
        return self._intent

    @property
    def last_transfer(self) -> TransferRecord | None:
        """The most recently broadcast transfer."""
        if self._last_tx_hash is None:
            return None
        return self._transfers.get(self._last_tx_hash)

    @property
    def transfers(self) -> list[TransferRecord]:
        """All transfers of this session, oldest first."""
        return list(self._transfers.values())

    @property
    def header_label(self) -> str:
        """Who the wallet is running for."""
        if self._identity is not None:
            handle = self._identity.username or "telegram-user"
            return f"@{handle} • Non-custodial"
        return "Browser mode • Non-custodial"

    @property
    def address_url(self) -> str | None:
        """Explorer link for the active address on the active network."""
        if self._wallet is None:
            return None
        return networks.address_url(self._wallet.address, self._profile)

    @property
    def last_transfer_url(self) -> str | None:
        record = self.last_transfer
        return record.explorer_url if record else None

    def register_callback(self, callback: SessionCallback) -> None:
        """Register a callback for session events.

        Failing callbacks are caught and logged - they never break an operation.

        Args:
            callback: An object implementing the SessionCallback protocol.
        """
        self._callbacks.append(callback)

    # =========================================================================
    # Wallet lifecycle
    # =========================================================================

    async def create(self, password: str) -> bool:
        """Generate a wallet, encrypt it and save it.

        In the account-linked variant the encrypted blob is also backed up
        to the signed-in account.
        """
        if self._state != WalletState.NO_WALLET:
            await self._set_status("A wallet is already open. Delete it first.", StatusLevel.ERROR)
            return False

        try:
            self._check_password(password)
        except PasswordTooShortError as e:
            await self._set_status(str(e), StatusLevel.ERROR)
            return False

        if self._backend is not None:
            reason = self._backup_guard()
            if reason is not None:
                await self._set_status(reason, StatusLevel.ERROR)
                return False

        await self._set_state(WalletState.CREATING)
        await self._set_status("Creating wallet...")

        try:
            material = self._custody.generate()
            blob = await self._custody.encrypt(material.private_key, password)
            await self._store.persist(blob)
        except (GenerationError, OSError, ValueError) as e:
            logger.error("Wallet creation failed: {}", e)
            await self._set_state(WalletState.NO_WALLET)
            await self._set_status(f"Create wallet error: {e}", StatusLevel.ERROR)
            return False

        self._wallet = material
        self._transfers.clear()
        self._last_tx_hash = None
        await self._set_state(WalletState.ACTIVE)
        logger.info("Created wallet {}", material.short_address)

        message = "Wallet created + saved on this device."
        level = StatusLevel.SUCCESS
        if self._backend is not None and self._account is not None:
            try:
                await self._save_remote(self._account.id, blob)
                message = "Wallet created, saved on this device and backed up."
            except BackendError as e:
                message = (
                    f"Wallet saved on this device, but cloud backup failed: {e}. "
                    "Use backup to retry."
                )
                level = StatusLevel.ERROR

        await self._set_status(message, level)
        self._schedule(self.refresh_balance())
        return True

    async def unlock(self, password: str) -> bool:
        """Decrypt the locally saved wallet."""
        if self._state != WalletState.NO_WALLET:
            await self._set_status("A wallet is already open.", StatusLevel.ERROR)
            return False

        await self._set_state(WalletState.UNLOCKING)

        try:
            blob = await self._store.load()
        except OSError as e:
            logger.error("Failed to read keystore: {}", e)
            blob = None

        if blob is None:
            await self._set_state(WalletState.NO_WALLET)
            await self._set_status(
                "No wallet saved on this device. Create one first.", StatusLevel.ERROR
            )
            return False

        if not password:
            await self._set_state(WalletState.NO_WALLET)
            await self._set_status("Enter password to unlock.", StatusLevel.ERROR)
            return False

        return await self._unlock_blob(blob, password)

    async def restore(self, password: str, account_id: str | None = None) -> bool:
        """Copy the account's cloud backup to this device and unlock it.

        Args:
            password: Password the backup was encrypted with.
            account_id: Account to restore from; defaults to the signed-in one.
        """
        if self._state != WalletState.NO_WALLET:
            await self._set_status(
                "Delete the open wallet before restoring a backup.", StatusLevel.ERROR
            )
            return False

        if self._backend is None:
            await self._set_status("Cloud backup is not configured.", StatusLevel.ERROR)
            return False

        if account_id is None and self._account is not None:
            account_id = self._account.id
        if not account_id:
            await self._set_status("Sign in to restore your backup.", StatusLevel.ERROR)
            return False

        if not password:
            await self._set_status("Enter password to unlock.", StatusLevel.ERROR)
            return False

        await self._set_state(WalletState.UNLOCKING)

        try:
            blob = await self._backend.load_backup(account_id)
        except BackendError as e:
            await self._set_state(WalletState.NO_WALLET)
            await self._set_status(f"Restore failed: {e}", StatusLevel.ERROR)
            return False

        if blob is None:
            await self._set_state(WalletState.NO_WALLET)
            await self._set_status("No backup found for this account.", StatusLevel.ERROR)
            return False

        try:
            await self._store.persist(blob)
        except OSError as e:
            logger.error("Failed to save restored keystore: {}", e)
            await self._set_state(WalletState.NO_WALLET)
            await self._set_status(f"Restore failed: {e}", StatusLevel.ERROR)
            return False

        logger.info("Restored keystore from backup of account {}", account_id)
        return await self._unlock_blob(blob, password)

    async def backup(self) -> bool:
        """Copy the locally saved blob to the signed-in account."""
        if self._backend is None:
            await self._set_status("Cloud backup is not configured.", StatusLevel.ERROR)
            return False

        reason = self._backup_guard()
        if reason is not None:
            await self._set_status(reason, StatusLevel.ERROR)
            return False

        try:
            blob = await self._store.load()
        except OSError as e:
            logger.error("Failed to read keystore: {}", e)
            blob = None

        if blob is None:
            await self._set_status(
                "No wallet saved on this device. Create one first.", StatusLevel.ERROR
            )
            return False

        assert self._account is not None
        try:
            await self._save_remote(self._account.id, blob)
        except BackendError as e:
            await self._set_status(f"Backup failed: {e}", StatusLevel.ERROR)
            return False

        await self._set_status("Wallet backed up to your account.", StatusLevel.SUCCESS)
        return True

    async def delete(self) -> bool:
        """Forget the wallet on this device.

        The local blob and the in-memory key are always discarded; a cloud
        backup is left untouched.
        """
        await self._cancel_background()

        try:
            await self._store.clear()
        except OSError as e:
            logger.error("Failed to delete keystore: {}", e)
            cleared = False
        else:
            cleared = True

        self._wallet = None
        self._balance = None
        self._intent = TransferIntent()
        self._transfers.clear()
        self._last_tx_hash = None
        await self._set_state(WalletState.NO_WALLET)
        await self._emit_balance_updated(None, self._profile)

        if not cleared:
            await self._set_status(
                "Wallet closed, but the saved copy could not be deleted.", StatusLevel.ERROR
            )
            return False

        await self._set_status("Wallet deleted from this device.")
        return True

    async def has_saved_wallet(self) -> bool:
        """Whether this device holds an encrypted wallet to unlock."""
        return await self._store.exists()

    async def saved_address(self) -> str | None:
        """Lowercase address of the wallet saved on this device.

        Read from the keystore without the password, for the unlock screen.
        """
        blob = await self._store.load()
        if blob is None:
            return None
        return keystore_address(blob)

    def acknowledge_mnemonic(self) -> None:
        """Drop the recovery phrase once the user has written it down."""
        if self._wallet is not None and self._wallet.mnemonic is not None:
            self._wallet = dataclasses.replace(self._wallet, mnemonic=None)

    # =========================================================================
    # Network and balance
    # =========================================================================

    async def select_network(self, key: str) -> NetworkProfile:
        """Switch the active network.

        Always allowed. With an open wallet, the balance is refreshed once
        against the new network.
        """
        profile = networks.resolve(key, self._rpc_overrides)
        if profile == self._profile:
            return profile

        logger.info("Switched network {} -> {}", self._profile.key, profile.key)
        self._profile = profile
        self._balance = None
        await self._emit_balance_updated(None, profile)

        if self._wallet is not None:
            await self.refresh_balance()
        return profile

    async def refresh_balance(self) -> bool:
        """Fetch the balance of the open wallet on the active network."""
        wallet = self._wallet
        if wallet is None:
            return False

        profile = self._profile
        try:
            balance = await self._gateway.get_balance(wallet.address, profile)
        except NetworkError as e:
            logger.warning("Balance refresh failed on {}: {}", profile.key, e)
            await self._set_status(f"Balance error: {e}", StatusLevel.ERROR)
            return False

        # Drop results that arrive after a network switch or wallet change
        if self._profile.key != profile.key or self.address != wallet.address:
            logger.debug("Discarding stale balance for {}", profile.key)
            return False

        self._balance = balance
        await self._emit_balance_updated(balance, profile)
        return True

    # =========================================================================
    # Transfers
    # =========================================================================

    async def send(self, destination: str, amount: str) -> bool:
        """Broadcast a native-asset transfer from the open wallet.

        Returns once the node accepts the transaction; confirmation is
        awaited in the background and reported through the transfer record.
        """
        if self._submitting:
            await self._set_status(
                "A transfer is already being submitted.", StatusLevel.ERROR
            )
            return False

        self._intent = TransferIntent(destination=destination, amount=amount)
        if self._wallet is None or self._state != WalletState.ACTIVE:
            await self._set_status("Unlock a wallet first.", StatusLevel.ERROR)
            return False

        self._submitting = True
        try:
            return await self._submit(self._wallet, self._profile)
        finally:
            self._submitting = False
            if self._state == WalletState.SENDING:
                await self._set_state(WalletState.ACTIVE)

    async def _submit(self, wallet: WalletKeyMaterial, profile: NetworkProfile) -> bool:
        """Validate the intent, hand it to the gateway and start confirmation."""
        intent = self._intent
        if not intent.is_complete:
            await self._set_status("Enter destination address + amount.", StatusLevel.ERROR)
            return False

        try:
            to_address = validate_address(intent.destination)
            to_smallest_unit(intent.amount, profile.decimals)
        except ValidationError as e:
            await self._set_status(str(e), StatusLevel.ERROR)
            return False

        await self._set_state(WalletState.SENDING)
        await self._set_status("Sending transaction...")

        try:
            tx_hash = await self._gateway.submit(
                wallet.private_key, profile, to_address, intent.amount
            )
        except ValidationError as e:
            if self._holds(wallet):
                await self._set_status(str(e), StatusLevel.ERROR)
            return False
        except NetworkError as e:
            logger.error("Send failed on {}: {}", profile.key, e)
            if self._holds(wallet):
                await self._set_status(f"Send failed: {e}", StatusLevel.ERROR)
            return False

        if not self._holds(wallet):
            # Wallet deleted while the node was accepting the transaction
            logger.warning(
                "Broadcast {} on {} after the wallet was closed; not tracking it",
                tx_hash,
                profile.key,
            )
            return False

        record = TransferRecord(
            tx_hash=tx_hash,
            network_key=profile.key,
            destination=to_address,
            amount=intent.amount.strip(),
            explorer_url=networks.tx_url(tx_hash, profile),
        )
        self._last_tx_hash = tx_hash
        self._intent = TransferIntent()
        await self._update_transfer(record)
        await self._set_status("Broadcasted. Waiting confirmation...")

        self._schedule(self._confirm(record, profile))
        return True

    async def _confirm(self, record: TransferRecord, profile: NetworkProfile) -> None:
        """Wait for a transfer to be mined and record the outcome."""
        try:
            block_number = await self._gateway.await_confirmation(
                record.tx_hash, profile, self._confirmation_timeout
            )
        except ConfirmationError as e:
            logger.warning("Transfer {} not confirmed: {}", record.tx_hash, e)
            await self._update_transfer(
                record.model_copy(
                    update={
                        "status": TransferStatus.FAILED,
                        "error": str(e),
                        "updated_at": time(),
                    }
                )
            )
            await self._set_status(
                f"Could not confirm transaction ({e}). It may still go through; "
                f"check {record.explorer_url} before sending again.",
                StatusLevel.ERROR,
            )
            return

        await self._update_transfer(
            record.model_copy(
                update={
                    "status": TransferStatus.CONFIRMED,
                    "block_number": block_number,
                    "updated_at": time(),
                }
            )
        )
        await self._set_status("Confirmed.", StatusLevel.SUCCESS)

        if self._wallet is not None and self._profile.key == profile.key:
            await self.refresh_balance()

    async def _update_transfer(self, record: TransferRecord) -> None:
        """Store, log and publish a transfer record."""
        self._transfers[record.tx_hash] = record
        if self._transfer_logger is not None:
            await self._transfer_logger.log_transfer(record)
        await self._emit_transfer_updated(record)

    def receive_qr(self) -> str:
        """Terminal QR code of the open wallet's address.

        Raises:
            ValueError: If no wallet is open.
        """
        if self._wallet is None:
            raise ValueError("No active wallet")

        qr = segno.make(f"ethereum:{self._wallet.address}")
        buffer = io.StringIO()
        qr.terminal(out=buffer, compact=True)
        return buffer.getvalue()

    # =========================================================================
    # Account (hosted backend)
    # =========================================================================

    async def sign_up(self, email: str, password: str) -> bool:
        """Create a backend account; it stays unverified until the e-mail link is used."""
        if self._backend is None:
            await self._set_status("Cloud backup is not configured.", StatusLevel.ERROR)
            return False
        if not email or not password:
            await self._set_status("Enter email and password.", StatusLevel.ERROR)
            return False

        try:
            account = await self._backend.sign_up(email.strip(), password)
        except BackendError as e:
            await self._set_status(str(e), StatusLevel.ERROR)
            return False

        if account.email_verified:
            await self._set_status("Account created. You can sign in now.", StatusLevel.SUCCESS)
        else:
            await self._set_status(
                "Account created. Check your email to verify it, then sign in.",
                StatusLevel.SUCCESS,
            )
        return True

    async def sign_in(self, email: str, password: str) -> bool:
        if self._backend is None:
            await self._set_status("Cloud backup is not configured.", StatusLevel.ERROR)
            return False
        if not email or not password:
            await self._set_status("Enter email and password.", StatusLevel.ERROR)
            return False

        try:
            auth = await self._backend.sign_in(email.strip(), password)
        except BackendError as e:
            await self._set_status(str(e), StatusLevel.ERROR)
            return False

        self._account = auth.account
        await self._set_status(f"Signed in as {auth.account.email}.", StatusLevel.SUCCESS)
        return True

    async def sign_out(self) -> bool:
        """Sign out of the backend. The open wallet stays open."""
        if self._backend is None or self._account is None:
            return False

        try:
            await self._backend.sign_out()
        except BackendError as e:
            logger.warning("Sign-out request failed: {}", e)
        finally:
            self._account = None

        await self._set_status("Signed out.")
        return True

    async def refresh_account(self) -> bool:
        """Reload verification status and username from the backend."""
        if self._backend is None or self._account is None:
            return False

        try:
            self._account = await self._backend.refresh_account()
        except BackendError as e:
            await self._set_status(str(e), StatusLevel.ERROR)
            return False
        return True

    async def set_username(self, username: str) -> bool:
        """Choose (or change) the account's username."""
        if self._backend is None or self._account is None:
            await self._set_status("Sign in first.", StatusLevel.ERROR)
            return False

        username = username.strip()
        if not username:
            await self._set_status("Choose a username.", StatusLevel.ERROR)
            return False

        try:
            await self._backend.save_username(self._account.id, username)
        except BackendError as e:
            await self._set_status(str(e), StatusLevel.ERROR)
            return False

        self._account = self._account.model_copy(update={"username": username})
        await self._set_status(f"Username set to {username}.", StatusLevel.SUCCESS)
        return True

    # =========================================================================
    # Background work
    # =========================================================================

    def _schedule(self, coro: Coroutine[Any, Any, Any]) -> None:
        """Run a coroutine in the background without blocking the caller."""
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def wait_for_background(self) -> None:
        """Wait for scheduled balance refreshes and confirmation waits."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _cancel_background(self) -> None:
        """Cancel pending background work."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def close(self) -> None:
        """Cancel background work and release network resources."""
        await self._cancel_background()
        await self._gateway.close()
        if self._backend is not None:
            await self._backend.close()

    # =========================================================================
    # Helpers
    # =========================================================================

    def _holds(self, wallet: WalletKeyMaterial) -> bool:
        """Whether the given wallet is still the open one."""
        return self._wallet is not None and self._wallet.address == wallet.address

    def _check_password(self, password: str) -> None:
        if len(password or "") < self._min_password_length:
            raise PasswordTooShortError(self._min_password_length)

    def _backup_guard(self) -> str | None:
        """Reason the account may not create or back up a wallet, if any."""
        if self._account is None:
            return "Sign in to create and back up a wallet."
        if not self._account.email_verified:
            return "Verify your email before creating a wallet."
        if not self._account.username:
            return "Choose a username before creating a wallet."
        return None

    async def _save_remote(self, account_id: str, blob: str) -> None:
        """Write the remote slot, one write at a time."""
        assert self._backend is not None
        async with self._remote_lock:
            await self._backend.save_backup(account_id, blob)

    async def _unlock_blob(self, blob: str, password: str) -> bool:
        """Decrypt a blob into the custody slot."""
        await self._set_state(WalletState.UNLOCKING)
        try:
            material = await self._custody.decrypt(blob, password)
        except DecryptError:
            await self._set_state(WalletState.NO_WALLET)
            await self._set_status("Unlock failed (wrong password).", StatusLevel.ERROR)
            return False

        self._wallet = material
        self._transfers.clear()
        self._last_tx_hash = None
        await self._set_state(WalletState.ACTIVE)
        await self._set_status("Wallet unlocked.", StatusLevel.SUCCESS)
        logger.info("Unlocked wallet {}", material.short_address)

        self._schedule(self.refresh_balance())
        return True

    async def _set_state(self, state: WalletState) -> None:
        if state == self._state:
            return
        self._state = state
        await self._emit_state_changed(state)

    async def _set_status(self, message: str, level: StatusLevel = StatusLevel.INFO) -> None:
        self._status = Status(message=message, level=level)
        await self._emit_status(self._status)

    async def _emit_state_changed(self, state: WalletState) -> None:
        """Emit state_changed to all callbacks (fail-safe)."""
        for callback in self._callbacks:
            try:
                await callback.on_state_changed(state)
            except Exception as e:
                logger.debug("Callback error in on_state_changed: {}", str(e))

    async def _emit_status(self, status: Status) -> None:
        """Emit status to all callbacks (fail-safe)."""
        for callback in self._callbacks:
            try:
                await callback.on_status(status)
            except Exception as e:
                logger.debug("Callback error in on_status: {}", str(e))

    async def _emit_balance_updated(
        self, balance: Decimal | None, profile: NetworkProfile
    ) -> None:
        """Emit balance_updated to all callbacks (fail-safe)."""
        for callback in self._callbacks:
            try:
                await callback.on_balance_updated(balance, profile)
            except Exception as e:
                logger.debug("Callback error in on_balance_updated: {}", str(e))

    async def _emit_transfer_updated(self, record: TransferRecord) -> None:
        """Emit transfer_updated to all callbacks (fail-safe)."""
        for callback in self._callbacks:
            try:
                await callback.on_transfer_updated(record)
            except Exception as e:
                logger.debug("Callback error in on_transfer_updated: {}", str(e))
