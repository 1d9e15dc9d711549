import pytest
from vault.utils.math import MAX_UINT256, FixedPointPriceMath, UniswapV3Math

Q96 = UniswapV3Math.Q96
FLOOR = FixedPointPriceMath.SQRT_PRICE_SAFETY_FLOOR


class TestUniswapV3Math:
    def test_get_sqrt_ratio_at_tick_zero(self):
        # Tick 0 should be exactly 2^96
        expected = 1 << 96
        assert UniswapV3Math.get_sqrt_ratio_at_tick(0) == expected

    def test_get_sqrt_ratio_at_tick_min(self):
        tick = UniswapV3Math.MIN_TICK
        ratio = UniswapV3Math.get_sqrt_ratio_at_tick(tick)
        assert ratio == UniswapV3Math.MIN_SQRT_RATIO

    def test_get_sqrt_ratio_at_tick_max(self):
        tick = UniswapV3Math.MAX_TICK
        ratio = UniswapV3Math.get_sqrt_ratio_at_tick(tick)
        assert ratio == UniswapV3Math.MAX_SQRT_RATIO

    def test_get_sqrt_ratio_out_of_range(self):
        with pytest.raises(ValueError):
            UniswapV3Math.get_sqrt_ratio_at_tick(UniswapV3Math.MAX_TICK + 1)
        with pytest.raises(ValueError):
            UniswapV3Math.get_sqrt_ratio_at_tick(UniswapV3Math.MIN_TICK - 1)

    @pytest.mark.parametrize("tick", [-887272, -665421, -200000, -1, 0, 1, 60, 76012, 887271])
    def test_get_tick_at_sqrt_ratio_inverts(self, tick):
        ratio = UniswapV3Math.get_sqrt_ratio_at_tick(tick)
        assert UniswapV3Math.get_tick_at_sqrt_ratio(ratio) == tick
        # Anything strictly between two ticks rounds down
        if tick < UniswapV3Math.MAX_TICK - 1:
            assert UniswapV3Math.get_tick_at_sqrt_ratio(ratio + 1) == tick

    def test_get_tick_just_below_zero(self):
        assert UniswapV3Math.get_tick_at_sqrt_ratio(Q96 - 1) == -1

    def test_get_tick_at_sqrt_ratio_out_of_range(self):
        with pytest.raises(ValueError):
            UniswapV3Math.get_tick_at_sqrt_ratio(UniswapV3Math.MIN_SQRT_RATIO - 1)
        with pytest.raises(ValueError):
            UniswapV3Math.get_tick_at_sqrt_ratio(UniswapV3Math.MAX_SQRT_RATIO)


class TestSwapStepMath:
    L = 10**18

    def test_zero_input_keeps_price(self):
        assert UniswapV3Math.get_next_sqrt_price_from_input(Q96, self.L, 0, True) == Q96
        assert UniswapV3Math.get_next_sqrt_price_from_input(Q96, self.L, 0, False) == Q96

    def test_token0_in_moves_price_down(self):
        amount_in = 10**15
        next_price = UniswapV3Math.get_next_sqrt_price_from_input(Q96, self.L, amount_in, True)
        assert next_price < Q96

        required = UniswapV3Math.get_amount0_delta(next_price, Q96, self.L, True)
        assert required <= amount_in
        assert required >= amount_in - 1

    def test_token1_in_moves_price_up(self):
        amount_in = 10**15
        next_price = UniswapV3Math.get_next_sqrt_price_from_input(Q96, self.L, amount_in, False)
        assert next_price > Q96

        required = UniswapV3Math.get_amount1_delta(Q96, next_price, self.L, True)
        assert required <= amount_in
        assert required >= amount_in - 1

    def test_amount_deltas_argument_order_irrelevant(self):
        a = UniswapV3Math.get_sqrt_ratio_at_tick(-10)
        b = UniswapV3Math.get_sqrt_ratio_at_tick(10)
        assert UniswapV3Math.get_amount0_delta(a, b, self.L, False) == UniswapV3Math.get_amount0_delta(b, a, self.L, False)
        assert UniswapV3Math.get_amount1_delta(a, b, self.L, True) == UniswapV3Math.get_amount1_delta(b, a, self.L, True)

    def test_rounding_up_never_below_rounding_down(self):
        a = UniswapV3Math.get_sqrt_ratio_at_tick(-7)
        b = UniswapV3Math.get_sqrt_ratio_at_tick(13)
        for fn in (UniswapV3Math.get_amount0_delta, UniswapV3Math.get_amount1_delta):
            down = fn(a, b, self.L, False)
            up = fn(a, b, self.L, True)
            assert down <= up <= down + 1

    def test_invalid_liquidity(self):
        with pytest.raises(ValueError):
            UniswapV3Math.get_next_sqrt_price_from_input(Q96, 0, 1, True)


class TestMulDiv:
    def test_full_width_intermediate(self):
        assert FixedPointPriceMath.mul_div(MAX_UINT256, MAX_UINT256, MAX_UINT256) == MAX_UINT256

    def test_floor(self):
        assert FixedPointPriceMath.mul_div(7, 1, 2) == 3

    def test_rounding_up(self):
        assert FixedPointPriceMath.mul_div_rounding_up(7, 1, 2) == 4
        assert FixedPointPriceMath.mul_div_rounding_up(8, 1, 2) == 4

    def test_division_by_zero(self):
        with pytest.raises(ZeroDivisionError):
            FixedPointPriceMath.mul_div(1, 1, 0)

    def test_overflow(self):
        with pytest.raises(OverflowError):
            FixedPointPriceMath.mul_div(MAX_UINT256, 2, 1)

    def test_saturate(self):
        assert FixedPointPriceMath.mul_div(MAX_UINT256, 2, 1, saturate=True) == MAX_UINT256
        assert FixedPointPriceMath.mul_div_rounding_up(MAX_UINT256, 3, 2, saturate=True) == MAX_UINT256


class TestPriceConversion:
    def test_unit_price(self):
        assert FixedPointPriceMath.token0_to_token1(10**18, Q96) == 10**18
        assert FixedPointPriceMath.token1_to_token0(10**18, Q96) == 10**18

    def test_price_four(self):
        # sqrt price 2 => 1 token0 = 4 token1
        assert FixedPointPriceMath.token0_to_token1(10**18, 2 * Q96) == 4 * 10**18
        assert FixedPointPriceMath.token1_to_token0(4 * 10**18, 2 * Q96) == 10**18

    def test_zero_amount_is_zero(self):
        for sqrt_price in (UniswapV3Math.MIN_SQRT_RATIO, FLOOR - 1, FLOOR, Q96, UniswapV3Math.MAX_SQRT_RATIO - 1):
            assert FixedPointPriceMath.token0_to_token1(0, sqrt_price) == 0
            assert FixedPointPriceMath.token1_to_token0(0, sqrt_price) == 0

    def test_nonzero_amount_never_zero(self):
        for sqrt_price in (UniswapV3Math.MIN_SQRT_RATIO, FLOOR - 1, FLOOR, Q96, UniswapV3Math.MAX_SQRT_RATIO - 1):
            assert FixedPointPriceMath.token0_to_token1(1, sqrt_price) >= 1
            assert FixedPointPriceMath.token1_to_token0(1, sqrt_price) >= 1

    def test_invalid_price(self):
        with pytest.raises(ValueError):
            FixedPointPriceMath.token0_to_token1(1, 0)
        with pytest.raises(ValueError):
            FixedPointPriceMath.token1_to_token0(1, -5)

    def test_at_floor_square_then_divide(self):
        # price_x96 is exactly 1 at the floor
        assert FixedPointPriceMath.token1_to_token0(3, FLOOR) == 3 * Q96
        assert FixedPointPriceMath.token0_to_token1(5 * Q96, FLOOR) == 5

    def test_below_floor_divide_then_square(self):
        # Squaring first would round the price to zero here
        sqrt_price = FLOOR - 1
        result = FixedPointPriceMath.token1_to_token0(1, sqrt_price)
        exact = UniswapV3Math.Q192 // (sqrt_price * sqrt_price)
        assert abs(result - exact) * 10**9 < exact

    def test_no_precision_cliff_at_floor(self):
        amount = 10**30
        below = FixedPointPriceMath.token0_to_token1(amount, FLOOR - 1)
        at = FixedPointPriceMath.token0_to_token1(amount, FLOOR)
        assert 0 < below <= at

    def test_floor_tick_values_nonzero(self):
        sqrt_price = UniswapV3Math.get_sqrt_ratio_at_tick(-665421)
        for asset_is_token0 in (True, False):
            assert FixedPointPriceMath.value_as_asset(10**30, sqrt_price, asset_is_token0) > 0

    def test_saturates_at_extremes(self):
        assert FixedPointPriceMath.token1_to_token0(MAX_UINT256, UniswapV3Math.MIN_SQRT_RATIO) == MAX_UINT256
        assert FixedPointPriceMath.token0_to_token1(MAX_UINT256, UniswapV3Math.MAX_SQRT_RATIO - 1) == MAX_UINT256

    @pytest.mark.parametrize(
        "sqrt_price",
        [UniswapV3Math.MIN_SQRT_RATIO, FLOOR - 1, FLOOR, FLOOR + 1, Q96, UniswapV3Math.MAX_SQRT_RATIO - 1],
    )
    def test_monotonic_in_amount(self, sqrt_price):
        amounts = [0, 1, 2, 10**6, 10**18, 10**30, 10**50, MAX_UINT256]
        for asset_is_token0 in (True, False):
            values = [FixedPointPriceMath.value_as_asset(a, sqrt_price, asset_is_token0) for a in amounts]
            assert values == sorted(values)

    def test_value_as_asset_direction(self):
        # asset = token0: paired token1 is worth 1/4 of its amount at price 4
        assert FixedPointPriceMath.value_as_asset(4 * 10**18, 2 * Q96, True) == 10**18
        assert FixedPointPriceMath.value_as_asset(10**18, 2 * Q96, False) == 4 * 10**18

    def test_asset_to_paired_direction(self):
        assert FixedPointPriceMath.asset_to_paired(10**18, 2 * Q96, True) == 4 * 10**18
        assert FixedPointPriceMath.asset_to_paired(4 * 10**18, 2 * Q96, False) == 10**18
