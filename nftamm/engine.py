"""Pool engine: the instruction surface over pools, sell states and escrows.

PoolEngine composes the pricing, fee, allow-list, sell-state and escrow
components into one pipeline per instruction. Asset movement, metadata,
delegate withdrawals and referral proxies are injected capabilities.

Every instruction runs inside PoolStore.transaction(): it either commits
every record and balance change or leaves the store exactly as it was.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field

import structlog

from nftamm.allowlist import check_allowlists, check_allowlists_for_asset, resolve_allowlists
from nftamm.constants import (
    CANCEL_AUTHORITY,
    MAX_BUYSIDE_CREATOR_ROYALTY_BP,
    MAX_LP_FEE_BP,
    NATIVE_PAYMENT_MINT,
    POOL_ACCOUNT_RENT,
    RENT_EXEMPT_MINIMUM,
    SELL_STATE_ACCOUNT_RENT,
)
from nftamm.errors import (
    Expired,
    InvalidAccountState,
    InvalidAllowLists,
    InvalidAuthority,
    InvalidBP,
    InvalidCosigner,
    InvalidOwner,
    InvalidPaymentMint,
    InvalidReferral,
    InvalidSpotPrice,
    MMMError,
    NotEmptyEscrowAccount,
    NotEmptySellsideAssetAmount,
)
from nftamm.escrow import (
    LedgerDelegateEscrow,
    check_can_enable_shared_escrow,
    check_remaining_accounts,
    consume_quota,
    resync_buyside_payment_amount,
    sweep_local_escrow,
    try_close_escrow,
    try_close_pool,
    withdraw_from_delegate,
)
from nftamm.fees import (
    DEFAULT_FEE_CONFIG,
    DefaultFeeCalculator,
    FeeCalculator,
    FeeConfig,
    PoolPriceInfo,
    pay_creator_fees,
)
from nftamm.interfaces import DelegateEscrow, MetadataSource, ReferralVerifier
from nftamm.ledger import PoolStore, SellStateLedger
from nftamm.metadata import InMemoryMetadataSource
from nftamm.models import (
    Allowlist,
    AllowlistKind,
    AssetDescriptor,
    CreateDynamicAllowlistArgs,
    CreatePoolArgs,
    CurveKind,
    DepositBuyArgs,
    DepositSellArgs,
    DynamicAllowlist,
    FulfillBuyArgs,
    FulfillSellArgs,
    MigratePoolArgs,
    Pool,
    SellState,
    SetSharedEscrowArgs,
    UpdateAllowlistsArgs,
    UpdateDynamicAllowlistArgs,
    UpdatePoolArgs,
    WithdrawBuyArgs,
    WithdrawSellArgs,
    dynamic_allowlist_pointer,
)
from nftamm.models.args import PoolParams
from nftamm.pda import get_dynamic_allowlist_address, get_pool_address
from nftamm.pricing import check_curve, get_total_price_and_next_price
from nftamm.referral import PaymentProxyVerifier
from nftamm.safe_int import S, checked_add_u64
from nftamm.transfers import HoldingsTransfer, TransferRegistry, build_default_registry

logger = structlog.get_logger()


def _unix_now() -> int:
    return int(time.time())


@dataclass(frozen=True)
class EngineConfig:
    """Engine-wide settings.

    Attributes:
        fees: Fee and royalty configuration
        rent_minimum: Balance that keeps a zero-data account alive
        pool_rent: Lamports a pool record holds while it exists
        sell_state_rent: Lamports a sell-state record holds while it exists
        clock: Current unix timestamp, used for expiry
    """

    fees: FeeConfig = DEFAULT_FEE_CONFIG
    rent_minimum: int = RENT_EXEMPT_MINIMUM
    pool_rent: int = POOL_ACCOUNT_RENT
    sell_state_rent: int = SELL_STATE_ACCOUNT_RENT
    clock: Callable[[], int] = field(default=_unix_now)


DEFAULT_ENGINE_CONFIG = EngineConfig()


@dataclass(frozen=True)
class FillReceipt:
    """What one fill moved.

    Attributes:
        pool: Pool address
        asset_id: Asset filled
        asset_amount: Units filled
        fulfill_buy: True when the pool bought
        total_price: Curve consideration
        next_price: Spot price after the fill
        lp_fee: Paid to the pool owner
        maker_fee: Signed maker fee
        taker_fee: Taker fee
        referral_fee: Paid to the referral
        royalty_paid: Paid to creators
        payment_amount: Received by the seller (fulfill buy) or paid by the
            buyer (fulfill sell)
        pool_closed: The fill emptied the pool and it was closed
    """

    pool: str
    asset_id: str
    asset_amount: int
    fulfill_buy: bool
    total_price: int
    next_price: int
    lp_fee: int
    maker_fee: int
    taker_fee: int
    referral_fee: int
    royalty_paid: int
    payment_amount: int
    pool_closed: bool = False


class PoolEngine:
    """Instruction surface of the pool engine.

    Args:
        store: Records and balances. A fresh in-memory store if None.
        metadata: Resolves asset ids to descriptors.
        transfers: Asset transfer strategy per asset kind. Defaults to
            holdings-backed strategies over store.holdings.
        delegate: Delegate escrow program for shared-escrow pools.
        referral_verifier: Accepts a pool's referral or its payment proxy.
        fee_calculator: Prices fills and splits fees.
        config: Engine configuration.
    """

    def __init__(
        self,
        store: PoolStore | None = None,
        metadata: MetadataSource | None = None,
        transfers: TransferRegistry | None = None,
        delegate: DelegateEscrow | None = None,
        referral_verifier: ReferralVerifier | None = None,
        fee_calculator: FeeCalculator | None = None,
        config: EngineConfig | None = None,
    ) -> None:
        self.config = config or DEFAULT_ENGINE_CONFIG
        self.store = store or PoolStore()
        self.metadata = metadata or InMemoryMetadataSource()
        self.transfers = transfers or build_default_registry(self.store.holdings)
        self.delegate = delegate or LedgerDelegateEscrow(self.store.bank)
        self.referral_verifier = referral_verifier or PaymentProxyVerifier()
        self.fee_calculator = fee_calculator or DefaultFeeCalculator(self.config.fees)
        self.sell_states = SellStateLedger(self.store, rent=self.config.sell_state_rent)

    # --- Reads ---

    def get_pool(self, address: str) -> Pool:
        """Snapshot of a pool.

        Raises:
            PoolNotFound: If no pool lives at the address
        """
        return self.store.get_pool(address).model_copy(deep=True)

    def get_sell_state(self, pool_address: str, asset_id: str) -> SellState:
        return self.store.get_sell_state(pool_address, asset_id).model_copy(deep=True)

    def get_dynamic_allowlist(self, address: str) -> DynamicAllowlist | None:
        dynamic = self.store.get_dynamic_allowlist(address)
        return dynamic.model_copy(deep=True) if dynamic is not None else None

    def quote(self, pool_address: str, asset_amount: int, fulfill_buy: bool) -> tuple[int, int]:
        """Curve price of a fill without executing it.

        Returns:
            (total_price, next_spot_price)
        """
        pool = self.store.get_pool(pool_address)
        return get_total_price_and_next_price(pool, asset_amount, fulfill_buy)

    # --- Pool administration ---

    def create_pool(self, owner: str, cosigner: str, args: CreatePoolArgs) -> Pool:
        """Create a pool for (owner, uuid), charging its rent to the owner.

        Raises:
            InvalidBP: If lp fee or buy-side royalty bp is above its cap
            InvalidSpotPrice: If spot_price is zero
            InvalidReferral: If the referral is the owner
            InvalidPaymentMint: If payment is not the native currency
            InvalidAllowLists: If the allow-list layout is malformed
            InvalidCurveType, InvalidCurveDelta: If the curve is invalid
            InvalidAccountState: If the pool already exists
            NotEnoughBalance: If the owner cannot pay the pool rent
        """
        with self._instruction("create_pool"):
            self._check_pool_params(owner, args)
            if args.payment_mint != NATIVE_PAYMENT_MINT:
                raise InvalidPaymentMint(args.payment_mint)
            check_allowlists(args.allowlists)
            check_curve(args.curve_type, args.curve_delta)

            address = get_pool_address(owner, args.uuid)
            if self.store.find_pool(address) is not None:
                raise InvalidAccountState(f"pool {address} already exists")

            self.store.bank.transfer(owner, address, self.config.pool_rent)
            pool = Pool(
                address=address,
                owner=owner,
                cosigner=cosigner,
                uuid=args.uuid,
                payment_mint=args.payment_mint,
                allowlists=list(args.allowlists),
                **self._pool_params(args),
            )
            self.store.put_pool(pool)
            self._log_pool("post_create_pool", pool)
            return pool.model_copy(deep=True)

    def update_pool(self, pool_address: str, owner: str, cosigner: str, args: UpdatePoolArgs) -> Pool:
        """Replace a pool's curve and policy.

        Raises:
            InvalidOwner, InvalidCosigner: If the signers do not match
            InvalidAccountState: If a reinvest flag is set on a delegated pool
            InvalidBP, InvalidSpotPrice, InvalidReferral, InvalidCurveType,
            InvalidCurveDelta: As for create_pool
        """
        with self._instruction("update_pool"):
            pool = self.store.get_pool(pool_address)
            self._authorize(pool, owner, cosigner)
            self._check_pool_params(owner, args)
            check_curve(args.curve_type, args.curve_delta)
            if pool.using_shared_escrow and (args.reinvest_fulfill_buy or args.reinvest_fulfill_sell):
                raise InvalidAccountState("reinvest cannot be combined with shared escrow")

            for name, value in self._pool_params(args).items():
                setattr(pool, name, value)
            self.store.put_pool(pool)
            self._log_pool("post_update_pool", pool)
            return pool.model_copy(deep=True)

    def update_allowlists(self, pool_address: str, cosigner: str, args: UpdateAllowlistsArgs) -> Pool:
        """Replace a pool's allow-list; only the cosigner may do this.

        Raises:
            InvalidCosigner: If the cosigner does not match
            InvalidAllowLists: If the layout is malformed
        """
        with self._instruction("update_allowlists"):
            pool = self.store.get_pool(pool_address)
            if cosigner != pool.cosigner:
                raise InvalidCosigner(cosigner)
            check_allowlists(args.allowlists)
            pool.allowlists = list(args.allowlists)
            self.store.put_pool(pool)
            self._log_pool("post_update_allowlists", pool)
            return pool.model_copy(deep=True)

    def set_shared_escrow(
        self, pool_address: str, owner: str, cosigner: str, args: SetSharedEscrowArgs
    ) -> Pool:
        """Delegate the pool's buy-side liquidity to the owner's delegate escrow.

        Raises:
            InvalidOwner, InvalidCosigner: If the signers do not match
            InvalidAccountState: If the pool has exposure, reinvests, or the
                account is not the owner's delegate escrow
        """
        with self._instruction("set_shared_escrow"):
            pool = self.store.get_pool(pool_address)
            self._authorize(pool, owner, cosigner)
            check_can_enable_shared_escrow(pool, args.shared_escrow_account)

            pool.shared_escrow_account = args.shared_escrow_account
            pool.shared_escrow_count = args.shared_escrow_count
            self.store.put_pool(pool)
            self._log_pool("post_set_shared_escrow", pool)
            return pool.model_copy(deep=True)

    def close_pool(self, pool_address: str, owner: str, cosigner: str) -> int:
        """Close an empty pool explicitly.

        Returns:
            Rent refunded to the owner

        Raises:
            PoolNotFound: If the pool does not exist (or was already closed)
            InvalidOwner, InvalidCosigner: If the signers do not match
            NotEmptySellsideAssetAmount: If the pool still holds inventory
            NotEmptyEscrowAccount: If the payment escrow holds lamports
        """
        with self._instruction("close_pool"):
            pool = self.store.get_pool(pool_address)
            self._authorize(pool, owner, cosigner)
            if pool.sellside_asset_amount != 0:
                raise NotEmptySellsideAssetAmount(str(pool.sellside_asset_amount))
            escrow_balance = self.store.bank.balance(pool.buyside_sol_escrow_account)
            if escrow_balance != 0:
                raise NotEmptyEscrowAccount(str(escrow_balance))

            refunded = self.store.bank.close(pool.address, pool.owner)
            self.store.delete_pool(pool.address)
            logger.info("pool_closed", pool=pool.address, owner=pool.owner, rent_refunded=refunded)
            return refunded

    def close_if_balance_invalid(self, pool_address: str, authority: str) -> bool:
        """Reclaim a pool whose escrow can no longer fund a fill.

        Returns:
            True if the pool was closed

        Raises:
            InvalidAuthority: If the signer is not the cancel authority
        """
        with self._instruction("close_if_balance_invalid"):
            if authority != CANCEL_AUTHORITY:
                raise InvalidAuthority(authority)
            pool = self.store.get_pool(pool_address)
            try_close_escrow(self.store.bank, pool, self.config.rent_minimum)
            resync_buyside_payment_amount(self.store.bank, pool)
            self.store.put_pool(pool)
            return try_close_pool(self.store, pool)

    # --- Dynamic allow-lists ---

    def create_dynamic_allowlist(
        self, authority: str, args: CreateDynamicAllowlistArgs
    ) -> DynamicAllowlist:
        """Create a shared allow-list record owned by authority.

        Raises:
            InvalidAllowLists: If the layout is malformed or points at
                another dynamic record
            InvalidAccountState: If the record already exists
        """
        with self._instruction("create_dynamic_allowlist"):
            self._check_dynamic_rules(args.allowlists)
            address = get_dynamic_allowlist_address(authority, args.cosigner_annotation)
            if self.store.get_dynamic_allowlist(address) is not None:
                raise InvalidAccountState(f"dynamic allowlist {address} already exists")

            dynamic = DynamicAllowlist(
                address=address,
                authority=authority,
                cosigner_annotation=args.cosigner_annotation,
                allowlists=list(args.allowlists),
            )
            self.store.put_dynamic_allowlist(dynamic)
            logger.info("dynamic_allowlist_created", address=address, authority=authority)
            return dynamic.model_copy(deep=True)

    def update_dynamic_allowlist(
        self, address: str, authority: str, args: UpdateDynamicAllowlistArgs
    ) -> DynamicAllowlist:
        """Replace a dynamic record's rules; every pool pointing at it follows.

        Raises:
            InvalidAccountState: If the record does not exist
            InvalidOwner: If authority is not the record's authority
            InvalidAllowLists: If the layout is malformed
        """
        with self._instruction("update_dynamic_allowlist"):
            dynamic = self.store.get_dynamic_allowlist(address)
            if dynamic is None:
                raise InvalidAccountState(f"dynamic allowlist {address} not found")
            if dynamic.authority != authority:
                raise InvalidOwner(authority)
            self._check_dynamic_rules(args.allowlists)

            dynamic.allowlists = list(args.allowlists)
            self.store.put_dynamic_allowlist(dynamic)
            logger.info("dynamic_allowlist_updated", address=address)
            return dynamic.model_copy(deep=True)

    def migrate_pool(self, authority: str, args: MigratePoolArgs) -> Pool:
        """Point a pool at a dynamic record carrying the same rules.

        Raises:
            InvalidAuthority: If the signer is not the cancel authority
            PoolNotFound: If (owner, uuid) has no pool
            InvalidAllowLists: If the record is missing or its rules differ
                from the pool's
        """
        with self._instruction("migrate_pool"):
            if authority != CANCEL_AUTHORITY:
                raise InvalidAuthority(authority)
            pool = self.store.get_pool(get_pool_address(args.owner, args.uuid))
            address = get_dynamic_allowlist_address(authority, args.cosigner_annotation)
            dynamic = self.store.get_dynamic_allowlist(address)
            if dynamic is None:
                raise InvalidAllowLists(f"dynamic allowlist {address} not found")
            if pool.allowlists != dynamic.allowlists:
                raise InvalidAllowLists("pool rules differ from the dynamic allowlist")

            pool.allowlists = dynamic_allowlist_pointer(address)
            self.store.put_pool(pool)
            self._log_pool("post_migrate_pool", pool)
            return pool.model_copy(deep=True)

    # --- Liquidity ---

    def deposit_buy(self, pool_address: str, owner: str, cosigner: str, args: DepositBuyArgs) -> Pool:
        """Move lamports from the owner into the payment escrow.

        Raises:
            InvalidOwner, InvalidCosigner: If the signers do not match
            InvalidAccountState: If the pool is delegated
            NotEnoughBalance: If the owner cannot cover the deposit
        """
        with self._instruction("deposit_buy"):
            pool = self.store.get_pool(pool_address)
            self._authorize(pool, owner, cosigner)
            if pool.using_shared_escrow:
                raise InvalidAccountState("delegated pools take no direct deposits")

            self.store.bank.transfer(owner, pool.buyside_sol_escrow_account, args.payment_amount)
            resync_buyside_payment_amount(self.store.bank, pool)
            self.store.put_pool(pool)
            self._log_pool("post_deposit_buy", pool)
            return pool.model_copy(deep=True)

    def withdraw_buy(
        self, pool_address: str, owner: str, cosigner: str, args: WithdrawBuyArgs
    ) -> Pool | None:
        """Return lamports from the payment escrow to the owner.

        Returns:
            The pool, or None if the withdrawal emptied and closed it

        Raises:
            InvalidOwner, InvalidCosigner: If the signers do not match
            NotEnoughBalance: If the escrow holds less than requested
        """
        with self._instruction("withdraw_buy"):
            pool = self.store.get_pool(pool_address)
            self._authorize(pool, owner, cosigner)

            self.store.bank.transfer(pool.buyside_sol_escrow_account, owner, args.payment_amount)
            try_close_escrow(self.store.bank, pool, self.config.rent_minimum)
            resync_buyside_payment_amount(self.store.bank, pool)
            self.store.put_pool(pool)
            self._log_pool("post_withdraw_buy", pool)
            if try_close_pool(self.store, pool):
                return None
            return pool.model_copy(deep=True)

    def deposit_sell(
        self, pool_address: str, owner: str, cosigner: str, asset_id: str, args: DepositSellArgs
    ) -> SellState:
        """Move owner inventory into the pool.

        Raises:
            InvalidOwner, InvalidCosigner: If the signers do not match
            InvalidAccountState: If the pool is delegated
            InvalidAsset: If the asset is unknown or cannot be moved
            InvalidAllowLists, UnexpectedMetadataUri: If the asset is not allowed
            NotEnoughBalance: If the owner lacks the units or the rent
        """
        with self._instruction("deposit_sell"):
            pool = self.store.get_pool(pool_address)
            self._authorize(pool, owner, cosigner)
            if pool.using_shared_escrow:
                raise InvalidAccountState("delegated pools hold no inventory")
            if args.asset_amount == 0:
                raise InvalidAccountState("asset_amount must be positive")
            asset = self._resolve_allowed_asset(pool, asset_id, args.allowlist_aux)

            self.transfers.for_asset(asset).transfer(asset, owner, pool.address, args.asset_amount)
            sell_state = self.sell_states.deposit(pool, asset_id, args.asset_amount, rent_payer=owner)
            self.store.put_pool(pool)
            self._log_pool("post_deposit_sell", pool)
            return sell_state.model_copy(deep=True)

    def withdraw_sell(
        self, pool_address: str, owner: str, cosigner: str, asset_id: str, args: WithdrawSellArgs
    ) -> Pool | None:
        """Return pool inventory to the owner.

        Returns:
            The pool, or None if the withdrawal emptied and closed it

        Raises:
            InvalidOwner, InvalidCosigner: If the signers do not match
            SellStateNotFound: If the pool holds none of the asset
            NumericOverflow: If more is withdrawn than the pool holds
        """
        with self._instruction("withdraw_sell"):
            pool = self.store.get_pool(pool_address)
            self._authorize(pool, owner, cosigner)
            asset = self.metadata.resolve(asset_id)

            self.sell_states.withdraw(pool, asset_id, args.asset_amount, rent_receiver=owner)
            strategy = self.transfers.for_asset(asset)
            strategy.transfer(asset, pool.address, owner, args.asset_amount)
            self._close_token_account(strategy, asset, pool.address)

            resync_buyside_payment_amount(self.store.bank, pool)
            self.store.put_pool(pool)
            self._log_pool("post_withdraw_sell", pool)
            if try_close_pool(self.store, pool):
                return None
            return pool.model_copy(deep=True)

    # --- Fills ---

    def fulfill_buy(
        self,
        pool_address: str,
        seller: str,
        asset_id: str,
        args: FulfillBuyArgs,
        cosigner: str,
        referral: str,
    ) -> FillReceipt:
        """Sell ``asset_amount`` units into the pool.

        The pool pays from its payment escrow, or from the owner's delegate
        escrow when shared escrow is enabled. The seller receives the total
        less lp fee, taker fee and royalty.

        Raises:
            Expired, InvalidCosigner, InvalidReferral, InvalidPaymentMint:
                If the fill is not permitted
            InvalidAllowLists, UnexpectedMetadataUri: If the asset is not allowed
            InvalidMakerOrTakerFeeBP: If maker/taker bp are out of bounds
            InvalidRemainingAccounts: If delegated accounts are wrong
            InvalidRequestedPrice: If the seller would receive less than
                min_payment_amount
            NumericOverflow: On any arithmetic fault, including a negative
                referral fee or an exhausted shared-escrow quota
            NotEnoughBalance: If the escrow cannot fund the fill
        """
        with self._instruction("fulfill_buy"):
            bank = self.store.bank
            pool = self.store.get_pool(pool_address)
            self._check_fill(pool, cosigner, referral)
            asset = self._resolve_allowed_asset(pool, asset_id, args.allowlist_aux)
            escrow = pool.buyside_sol_escrow_account
            n = args.asset_amount

            royalty_bp = asset.royalty_bp if asset.creators else 0
            info = self.fee_calculator.buy_fulfill_price_info(
                pool, bank.balance(escrow), n, args.maker_fee_bp, args.taker_fee_bp, royalty_bp
            )

            delegate_escrow = None
            if pool.using_shared_escrow:
                if pool.reinvest_fulfill_buy:
                    raise InvalidAccountState("reinvest cannot be combined with shared escrow")
                delegate_escrow = check_remaining_accounts(args.remaining_accounts, pool.owner)
                withdraw_from_delegate(
                    self.delegate,
                    bank,
                    pool,
                    delegate_escrow,
                    S(info.escrow_outflow).to_u64(),
                    self.config.rent_minimum,
                )
                consume_quota(pool, n)

            strategy = self.transfers.for_asset(asset)
            if pool.reinvest_fulfill_buy:
                strategy.transfer(asset, seller, pool.address, n)
                self.sell_states.deposit(pool, asset_id, n, rent_payer=seller)
            else:
                strategy.transfer(asset, seller, pool.owner, n)
            self._close_token_account(strategy, asset, seller)

            royalty = pay_creator_fees(
                bank,
                escrow,
                info.fee_base,
                asset,
                pool.buyside_creator_royalty_bp,
                args.creators,
                args.creator_hash,
                self.config.fees,
            )
            payment = self.fee_calculator.seller_payment(info, royalty.paid, args.min_payment_amount)
            bank.transfer(escrow, seller, payment)
            bank.transfer(escrow, pool.owner, info.lp_fee)
            bank.transfer(escrow, referral, info.referral_fee)

            pool.lp_fee_earned = checked_add_u64(pool.lp_fee_earned, info.lp_fee)
            pool.spot_price = info.next_price

            if delegate_escrow is not None:
                sweep_local_escrow(bank, pool, delegate_escrow, self.config.rent_minimum)
            else:
                try_close_escrow(bank, pool, self.config.rent_minimum)
            resync_buyside_payment_amount(bank, pool)
            self.store.put_pool(pool)
            self._log_pool("post_fulfill_buy", pool)
            logger.info(
                "fill_settled",
                side="fulfill_buy",
                pool=pool.address,
                total_price=info.total_price,
                lp_fee=info.lp_fee,
                royalty_paid=royalty.paid,
            )
            closed = try_close_pool(self.store, pool)
            return self._receipt(pool, asset_id, n, True, info, royalty.paid, payment, closed)

    def fulfill_sell(
        self,
        pool_address: str,
        buyer: str,
        asset_id: str,
        args: FulfillSellArgs,
        cosigner: str,
        referral: str,
    ) -> FillReceipt:
        """Buy ``asset_amount`` units from the pool.

        The buyer pays total less maker fee to the owner (or into the escrow
        when reinvesting), plus lp fee to the owner, the referral fee and
        royalty.

        Raises:
            Expired, InvalidCosigner, InvalidReferral, InvalidPaymentMint:
                If the fill is not permitted
            InvalidAllowLists, UnexpectedMetadataUri: If the asset is not allowed
            InvalidMakerOrTakerFeeBP: If maker/taker bp are out of bounds
            SellStateNotFound: If the pool holds none of the asset
            InvalidRequestedPrice: If the buyer would pay more than
                max_payment_amount
            NumericOverflow: On any arithmetic fault
            NotEnoughBalance: If the buyer cannot pay
        """
        with self._instruction("fulfill_sell"):
            bank = self.store.bank
            pool = self.store.get_pool(pool_address)
            self._check_fill(pool, cosigner, referral)
            asset = self._resolve_allowed_asset(pool, asset_id, args.allowlist_aux)
            escrow = pool.buyside_sol_escrow_account
            n = args.asset_amount

            info = self.fee_calculator.sell_fulfill_price_info(
                pool, bank.balance(escrow), n, args.maker_fee_bp, args.taker_fee_bp
            )

            if pool.reinvest_fulfill_sell:
                if pool.using_shared_escrow:
                    raise InvalidAccountState("reinvest cannot be combined with shared escrow")
                proceeds_to = escrow
            else:
                proceeds_to = pool.owner
            bank.transfer(buyer, proceeds_to, S(info.total_price).signed_sub(info.maker_fee).to_u64())

            self.sell_states.withdraw(pool, asset_id, n, rent_receiver=pool.owner)
            strategy = self.transfers.for_asset(asset)
            strategy.transfer(asset, pool.address, buyer, n)
            self._close_token_account(strategy, asset, pool.address)

            bank.transfer(buyer, pool.owner, info.lp_fee)
            bank.transfer(buyer, referral, info.referral_fee)

            pool.spot_price = info.next_price
            pool.lp_fee_earned = checked_add_u64(pool.lp_fee_earned, info.lp_fee)

            royalty = pay_creator_fees(
                bank,
                buyer,
                info.total_price,
                asset,
                args.buyside_creator_royalty_bp,
                args.creators,
                args.creator_hash,
                self.config.fees,
            )
            payment = self.fee_calculator.buyer_payment(info, royalty.paid, args.max_payment_amount)

            resync_buyside_payment_amount(bank, pool)
            self.store.put_pool(pool)
            self._log_pool("post_fulfill_sell", pool)
            logger.info(
                "fill_settled",
                side="fulfill_sell",
                pool=pool.address,
                total_price=info.total_price,
                lp_fee=info.lp_fee,
                royalty_paid=royalty.paid,
            )
            closed = try_close_pool(self.store, pool)
            return self._receipt(pool, asset_id, n, False, info, royalty.paid, payment, closed)

    # --- Internals ---

    @contextmanager
    def _instruction(self, name: str) -> Iterator[None]:
        try:
            with self.store.transaction(name):
                yield
        except MMMError as exc:
            logger.info(
                "operation_failed",
                instruction=name,
                code=int(exc.code),
                error=exc.name,
                detail=exc.detail,
            )
            raise

    @staticmethod
    def _authorize(pool: Pool, owner: str, cosigner: str) -> None:
        if owner != pool.owner:
            raise InvalidOwner(owner)
        if cosigner != pool.cosigner:
            raise InvalidCosigner(cosigner)

    @staticmethod
    def _check_pool_params(owner: str, args: PoolParams) -> None:
        if args.lp_fee_bp > MAX_LP_FEE_BP:
            raise InvalidBP(f"lp_fee_bp={args.lp_fee_bp} exceeds {MAX_LP_FEE_BP}")
        if args.buyside_creator_royalty_bp > MAX_BUYSIDE_CREATOR_ROYALTY_BP:
            raise InvalidBP(f"buyside_creator_royalty_bp={args.buyside_creator_royalty_bp}")
        if args.spot_price == 0:
            raise InvalidSpotPrice("spot_price must be positive")
        if args.referral == owner:
            raise InvalidReferral("referral cannot be the owner")

    @staticmethod
    def _pool_params(args: PoolParams) -> dict[str, object]:
        return {
            "spot_price": args.spot_price,
            "curve_type": CurveKind(args.curve_type),
            "curve_delta": args.curve_delta,
            "reinvest_fulfill_buy": args.reinvest_fulfill_buy,
            "reinvest_fulfill_sell": args.reinvest_fulfill_sell,
            "expiry": args.expiry,
            "lp_fee_bp": args.lp_fee_bp,
            "referral": args.referral,
            "cosigner_annotation": args.cosigner_annotation,
            "buyside_creator_royalty_bp": args.buyside_creator_royalty_bp,
        }

    @staticmethod
    def _check_dynamic_rules(allowlists: list[Allowlist]) -> None:
        check_allowlists(allowlists)
        if any(a.kind == AllowlistKind.DYNAMIC for a in allowlists):
            raise InvalidAllowLists("a dynamic allowlist cannot point at another")

    def _check_fill(self, pool: Pool, cosigner: str, referral: str) -> None:
        if pool.payment_mint != NATIVE_PAYMENT_MINT:
            raise InvalidPaymentMint(pool.payment_mint)
        if pool.is_expired(self.config.clock()):
            raise Expired(f"pool expired at {pool.expiry}")
        if cosigner != pool.cosigner:
            raise InvalidCosigner(cosigner)
        if not self.referral_verifier.verify(pool, referral):
            raise InvalidReferral(referral)

    def _resolve_allowed_asset(
        self, pool: Pool, asset_id: str, allowlist_aux: str | None
    ) -> AssetDescriptor:
        asset = self.metadata.resolve(asset_id)
        allowlists = resolve_allowlists(pool, self.store.get_dynamic_allowlist)
        check_allowlists_for_asset(allowlists, asset, allowlist_aux)
        return asset

    @staticmethod
    def _close_token_account(
        strategy: HoldingsTransfer, asset: AssetDescriptor, holder: str
    ) -> None:
        if strategy.close_if_empty(asset, holder):
            logger.debug("token_account_closed", holder=holder, asset=asset.asset_id)

    @staticmethod
    def _log_pool(event: str, pool: Pool) -> None:
        logger.info(
            event,
            pool=pool.address,
            spot_price=pool.spot_price,
            curve_type=int(pool.curve_type),
            curve_delta=pool.curve_delta,
            buyside_payment_amount=pool.buyside_payment_amount,
            sellside_asset_amount=pool.sellside_asset_amount,
            lp_fee_earned=pool.lp_fee_earned,
            shared_escrow_count=pool.shared_escrow_count,
        )

    @staticmethod
    def _receipt(
        pool: Pool,
        asset_id: str,
        asset_amount: int,
        fulfill_buy: bool,
        info: PoolPriceInfo,
        royalty_paid: int,
        payment_amount: int,
        pool_closed: bool,
    ) -> FillReceipt:
        return FillReceipt(
            pool=pool.address,
            asset_id=asset_id,
            asset_amount=asset_amount,
            fulfill_buy=fulfill_buy,
            total_price=info.total_price,
            next_price=info.next_price,
            lp_fee=info.lp_fee,
            maker_fee=info.maker_fee,
            taker_fee=info.taker_fee,
            referral_fee=info.referral_fee,
            royalty_paid=royalty_paid,
            payment_amount=payment_amount,
            pool_closed=pool_closed,
        )
