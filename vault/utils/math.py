MAX_UINT256 = (1 << 256) - 1


class UniswapV3Math:
    """
    Int-only Uniswap V3 math helpers (Q96 fixed point).
    """

    Q96 = 1 << 96
    Q192 = Q96 * Q96
    MIN_TICK = -887272
    MAX_TICK = 887272

    MIN_SQRT_RATIO = 4295128739
    MAX_SQRT_RATIO = 1461446703485210103287273052203988822378723970342

    @staticmethod
    def get_sqrt_ratio_at_tick(tick: int) -> int:
        if tick < UniswapV3Math.MIN_TICK or tick > UniswapV3Math.MAX_TICK:
            raise ValueError("T")

        abs_tick = -tick if tick < 0 else tick

        ratio = (
            0xFFFCB933BD6FAD37AA2D162D1A594001
            if abs_tick & 0x1 != 0
            else 0x100000000000000000000000000000000
        )

        if abs_tick & 0x2:
            ratio = (ratio * 0xFFF97272373D413259A46990580E213A) >> 128
        if abs_tick & 0x4:
            ratio = (ratio * 0xFFF2E50F5F656932EF12357CF3C7FDCC) >> 128
        if abs_tick & 0x8:
            ratio = (ratio * 0xFFE5CACA7E10E4E61C3624EAA0941CD0) >> 128
        if abs_tick & 0x10:
            ratio = (ratio * 0xFFCB9843D60F6159C9DB58835C926644) >> 128
        if abs_tick & 0x20:
            ratio = (ratio * 0xFF973B41FA98C081472E6896DFB254C0) >> 128
        if abs_tick & 0x40:
            ratio = (ratio * 0xFF2EA16466C96A3843EC78B326B52861) >> 128
        if abs_tick & 0x80:
            ratio = (ratio * 0xFE5DEE046A99A2A811C461F1969C3053) >> 128
        if abs_tick & 0x100:
            ratio = (ratio * 0xFCBE86C7900A88AEDCFFC83B479AA3A4) >> 128
        if abs_tick & 0x200:
            ratio = (ratio * 0xF987A7253AC413176F2B074CF7815E54) >> 128
        if abs_tick & 0x400:
            ratio = (ratio * 0xF3392B0822B70005940C7A398E4B70F3) >> 128
        if abs_tick & 0x800:
            ratio = (ratio * 0xE7159475A2C29B7443B29C7FA6E889D9) >> 128
        if abs_tick & 0x1000:
            ratio = (ratio * 0xD097F3BDFD2022B8845AD8F792AA5825) >> 128
        if abs_tick & 0x2000:
            ratio = (ratio * 0xA9F746462D870FDF8A65DC1F90E061E5) >> 128
        if abs_tick & 0x4000:
            ratio = (ratio * 0x70D869A156D2A1B890BB3DF62BAF32F7) >> 128
        if abs_tick & 0x8000:
            ratio = (ratio * 0x31BE135F97D08FD981231505542FCFA6) >> 128
        if abs_tick & 0x10000:
            ratio = (ratio * 0x9AA508B5B7A84E1C677DE54F3E99BC9) >> 128
        if abs_tick & 0x20000:
            ratio = (ratio * 0x5D6AF8DEDB81196699C329225EE604) >> 128
        if abs_tick & 0x40000:
            ratio = (ratio * 0x2216E584F5FA1EA926041BEDFE98) >> 128
        if abs_tick & 0x80000:
            ratio = (ratio * 0x48A170391F7DC42444E8FA2) >> 128

        if tick > 0:
            ratio = MAX_UINT256 // ratio

        # round up to match Solidity
        return (ratio >> 32) + (1 if ratio & ((1 << 32) - 1) != 0 else 0)

    @staticmethod
    def get_tick_at_sqrt_ratio(sqrt_price_x96: int) -> int:
        """
        Greatest tick whose sqrt ratio is <= sqrt_price_x96.

        Binary search over get_sqrt_ratio_at_tick, so the result is exactly
        consistent with the forward conversion.
        """
        if not UniswapV3Math.MIN_SQRT_RATIO <= sqrt_price_x96 < UniswapV3Math.MAX_SQRT_RATIO:
            raise ValueError("R")

        low, high = UniswapV3Math.MIN_TICK, UniswapV3Math.MAX_TICK
        while low < high:
            mid = (low + high + 1) // 2
            if UniswapV3Math.get_sqrt_ratio_at_tick(mid) <= sqrt_price_x96:
                low = mid
            else:
                high = mid - 1
        return low

    # -----------------------------
    # Swap step math
    # -----------------------------

    @staticmethod
    def get_amount0_delta(sqrtPA: int, sqrtPB: int, L: int, round_up: bool) -> int:
        if sqrtPA > sqrtPB:
            sqrtPA, sqrtPB = sqrtPB, sqrtPA

        numerator1 = L << 96
        numerator2 = sqrtPB - sqrtPA
        if round_up:
            return -(-FixedPointPriceMath.mul_div_rounding_up(numerator1, numerator2, sqrtPB) // sqrtPA)
        return FixedPointPriceMath.mul_div(numerator1, numerator2, sqrtPB) // sqrtPA

    @staticmethod
    def get_amount1_delta(sqrtPA: int, sqrtPB: int, L: int, round_up: bool) -> int:
        if sqrtPA > sqrtPB:
            sqrtPA, sqrtPB = sqrtPB, sqrtPA

        if round_up:
            return FixedPointPriceMath.mul_div_rounding_up(L, sqrtPB - sqrtPA, UniswapV3Math.Q96)
        return FixedPointPriceMath.mul_div(L, sqrtPB - sqrtPA, UniswapV3Math.Q96)

    @staticmethod
    def get_next_sqrt_price_from_input(
        sqrtP: int,
        L: int,
        amount_in: int,
        zero_for_one: bool,
    ) -> int:
        """
        Price after adding `amount_in` to the pool at constant liquidity.

        token0 in pushes the price down (rounded up), token1 in pushes it up
        (rounded down), so the pool never gives away more than it should.
        """
        if sqrtP <= 0 or L <= 0:
            raise ValueError("Invalid price or liquidity")
        if amount_in == 0:
            return sqrtP

        if zero_for_one:
            numerator1 = L << 96
            denominator = numerator1 + amount_in * sqrtP
            return FixedPointPriceMath.mul_div_rounding_up(numerator1, sqrtP, denominator)

        return sqrtP + (amount_in << 96) // L


class FixedPointPriceMath:
    """
    Converts pool-token quantities into asset terms from a sqrtPriceX96.

    Squaring the sqrt price first overflows for very large prices, and
    dividing first collapses to zero for very small ones. Below
    SQRT_PRICE_SAFETY_FLOOR (around tick -665421) the conversion is evaluated
    divide-then-square, above it square-then-divide. Results are clamped to
    MAX_UINT256 instead of overflowing, and a non-zero amount is never valued
    at zero.
    """

    Q96 = UniswapV3Math.Q96
    SQRT_PRICE_SAFETY_FLOOR = 1 << 48

    @staticmethod
    def mul_div(a: int, b: int, denominator: int, saturate: bool = False) -> int:
        """
        floor(a * b / denominator) with a full-width intermediate product.

        Raises:
            ZeroDivisionError: denominator is zero
            OverflowError: the result does not fit in a uint256 and saturate is off
        """
        if denominator == 0:
            raise ZeroDivisionError("mul_div by zero")
        result = (a * b) // denominator
        if result > MAX_UINT256:
            if saturate:
                return MAX_UINT256
            raise OverflowError("mul_div result exceeds uint256")
        return result

    @staticmethod
    def mul_div_rounding_up(a: int, b: int, denominator: int, saturate: bool = False) -> int:
        result = FixedPointPriceMath.mul_div(a, b, denominator, saturate)
        if result < MAX_UINT256 and (a * b) % denominator:
            result += 1
        return result

    @staticmethod
    def token0_to_token1(amount: int, sqrt_price_x96: int) -> int:
        """amount * price, price = sqrtPrice^2 / 2^192."""
        if amount == 0:
            return 0
        if sqrt_price_x96 <= 0:
            raise ValueError(f"Invalid sqrt price {sqrt_price_x96}")

        q96 = FixedPointPriceMath.Q96
        if sqrt_price_x96 < FixedPointPriceMath.SQRT_PRICE_SAFETY_FLOOR:
            partial = FixedPointPriceMath.mul_div(amount, sqrt_price_x96, q96, saturate=True)
            result = FixedPointPriceMath.mul_div(partial, sqrt_price_x96, q96, saturate=True)
        else:
            price_x96 = FixedPointPriceMath.mul_div(sqrt_price_x96, sqrt_price_x96, q96)
            result = FixedPointPriceMath.mul_div(amount, price_x96, q96, saturate=True)

        return max(result, 1)

    @staticmethod
    def token1_to_token0(amount: int, sqrt_price_x96: int) -> int:
        """amount * 2^96 / price, price = sqrtPrice^2 / 2^96."""
        if amount == 0:
            return 0
        if sqrt_price_x96 <= 0:
            raise ValueError(f"Invalid sqrt price {sqrt_price_x96}")

        q96 = FixedPointPriceMath.Q96
        if sqrt_price_x96 < FixedPointPriceMath.SQRT_PRICE_SAFETY_FLOOR:
            partial = FixedPointPriceMath.mul_div(amount, q96, sqrt_price_x96, saturate=True)
            result = FixedPointPriceMath.mul_div(partial, q96, sqrt_price_x96, saturate=True)
        else:
            price_x96 = FixedPointPriceMath.mul_div(sqrt_price_x96, sqrt_price_x96, q96)
            result = FixedPointPriceMath.mul_div(amount, q96, price_x96, saturate=True)

        return max(result, 1)

    @staticmethod
    def value_as_asset(amount: int, sqrt_price_x96: int, asset_is_token0: bool) -> int:
        """Value of `amount` paired tokens in asset units."""
        if asset_is_token0:
            return FixedPointPriceMath.token1_to_token0(amount, sqrt_price_x96)
        return FixedPointPriceMath.token0_to_token1(amount, sqrt_price_x96)

    @staticmethod
    def asset_to_paired(amount: int, sqrt_price_x96: int, asset_is_token0: bool) -> int:
        """Quantity of paired tokens worth `amount` asset."""
        if asset_is_token0:
            return FixedPointPriceMath.token0_to_token1(amount, sqrt_price_x96)
        return FixedPointPriceMath.token1_to_token0(amount, sqrt_price_x96)
