# tests/test_operators.py
from numbers import Number

import numpy as np
import pytest

from hashvector import (
    BIGINT,
    COMPLEX,
    DOUBLE,
    ELEMENT_KINDS,
    FLOAT,
    INT,
    LONG,
    DenseVector,
    DimensionMismatchError,
    HashVector,
    OpenAddressHashArray,
    OpKind,
    UnsupportedOperatorError,
    apply_binary,
    apply_update,
    binary_op_for,
    copy_vector,
    dot,
    map_pairs,
    map_values,
    negate,
    pure_from_update,
    registered_operators,
    unary_op_for,
    update_op_for,
    zip_map_values,
)
from hashvector import operators as ops

ELEMENTWISE = (OpKind.ADD, OpKind.SUB, OpKind.MUL_SCALAR, OpKind.DIV,
               OpKind.SET, OpKind.MOD, OpKind.POW)


# ---------------------
# Helper functions
# ---------------------
def _dense(values, kind=DOUBLE):
    return DenseVector.from_values(values, kind)


def _sparse(length, pairs, kind=DOUBLE):
    return HashVector.from_pairs(length, pairs, kind)


def _excluded(op, kind):
    return (op is OpKind.MOD and kind is COMPLEX) or (op is OpKind.POW and kind is BIGINT)


# ---------------------
# Registry contents
# ---------------------
@pytest.mark.parametrize("kind", ELEMENT_KINDS, ids=lambda k: k.name)
@pytest.mark.parametrize("op", ELEMENTWISE, ids=lambda o: o.name)
def test_elementwise_entries_registered_except_exclusions(op, kind):
    lookups = [
        lambda: update_op_for(op, DenseVector, HashVector, kind),
        lambda: binary_op_for(op, DenseVector, HashVector, kind),
        lambda: update_op_for(op, HashVector, DenseVector, kind),
        lambda: binary_op_for(op, HashVector, DenseVector, kind),
    ]
    for lookup in lookups:
        if _excluded(op, kind):
            with pytest.raises(UnsupportedOperatorError):
                lookup()
        else:
            assert callable(lookup())


@pytest.mark.parametrize("kind", ELEMENT_KINDS, ids=lambda k: k.name)
def test_per_kind_entries_registered(kind):
    assert callable(binary_op_for(OpKind.MUL_INNER, DenseVector, HashVector, kind))
    assert callable(binary_op_for(OpKind.MUL_INNER, HashVector, DenseVector, kind))
    assert callable(binary_op_for(OpKind.MUL_SCALAR, HashVector, Number, kind))
    assert callable(binary_op_for(OpKind.ZIP_MAP_VALUES, HashVector, HashVector, kind))
    for op in (OpKind.NEG, OpKind.COPY, OpKind.MAP_VALUES, OpKind.MAP_ACTIVE_VALUES,
               OpKind.MAP_PAIRS, OpKind.MAP_ACTIVE_PAIRS):
        assert callable(unary_op_for(op, HashVector, kind))


def test_unsupported_lookup_message():
    with pytest.raises(UnsupportedOperatorError, match="MOD.*complex"):
        binary_op_for(OpKind.MOD, DenseVector, HashVector, COMPLEX)
    with pytest.raises(TypeError):
        update_op_for(OpKind.POW, DenseVector, HashVector, BIGINT)


def test_registry_is_read_only():
    assert ops._frozen
    with pytest.raises(RuntimeError):
        ops.register_binary(OpKind.ADD, DenseVector, DenseVector, DOUBLE, lambda a, b: a)
    with pytest.raises(TypeError):
        ops.BINARY_OPS[(OpKind.ADD, DenseVector, DenseVector, DOUBLE)] = None
    assert (OpKind.ADD, DenseVector, DenseVector, DOUBLE) not in ops.BINARY_OPS


def test_registered_operators_listing():
    listing = registered_operators()
    assert ("binary", "MOD", "DenseVector", "HashVector", "double") in listing
    assert ("binary", "MOD", "DenseVector", "HashVector", "complex") not in listing
    assert ("unary", "NEG", "HashVector", "", "bigint") in listing
    assert listing == sorted(listing)


def test_resolved_operator_is_reusable():
    add = binary_op_for(OpKind.ADD, DenseVector, HashVector, DOUBLE)
    d = _dense([1.0, 2.0])
    for step in range(3):
        d = add(d, _sparse(2, [(1, 1.0)]))
    np.testing.assert_array_equal(d.values(), [1.0, 5.0])


# ---------------------
# DenseVector op= HashVector
# ---------------------
def test_dense_add_sparse_in_place():
    d = _dense([1.0, 2.0, 3.0, 4.0])
    old = d.values()
    s = _sparse(4, [(1, 10.0), (3, -1.0)])
    d += s
    for i in range(4):
        assert d[i] == old[i] + s.get(i)
    np.testing.assert_array_equal(d.values(), [1.0, 12.0, 3.0, 3.0])


def test_dense_sub_sparse_on_strided_view():
    data = np.arange(8.0)
    d = DenseVector(data, offset=1, stride=2)
    s = _sparse(4, [(0, 1.0), (2, 5.0)])
    d -= s
    np.testing.assert_array_equal(data, [0.0, 0.0, 2.0, 3.0, 4.0, 0.0, 6.0, 7.0])


def test_dense_add_sparse_reads_non_zero_default():
    s = HashVector(OpenAddressHashArray(3, DOUBLE, default=5.0))
    s[1] = 1.0
    d = _dense([0.0, 0.0, 0.0])
    d += s
    np.testing.assert_array_equal(d.values(), [5.0, 1.0, 5.0])


def test_add_sub_with_non_zero_default_agree_in_both_orders():
    s = HashVector(OpenAddressHashArray(3, DOUBLE, default=1.0))
    d = _dense([0.0, 0.0, 0.0])
    np.testing.assert_array_equal((d + s).values(), [1.0, 1.0, 1.0])
    np.testing.assert_array_equal((s + d).values(), [1.0, 1.0, 1.0])
    np.testing.assert_array_equal((d - s).values(), [-1.0, -1.0, -1.0])
    np.testing.assert_array_equal((s - d).values(), [1.0, 1.0, 1.0])


def test_add_after_division_by_zero_agrees_in_both_orders():
    with np.errstate(divide="ignore", invalid="ignore"):
        s = _sparse(3, [(0, 2.0)]) / 0.0
        d = _dense([0.0, 0.0, 0.0])
        left = (d + s).values()
        right = (s + d).values()
    assert np.isnan(s.default)
    np.testing.assert_array_equal(left, right)
    assert left[0] == np.inf
    assert np.isnan(left[1:]).all()


def test_dense_mul_sparse_scans_every_index():
    d = _dense([2.0, 3.0, 4.0])
    d *= _sparse(3, [(1, 10.0)])
    np.testing.assert_array_equal(d.values(), [0.0, 30.0, 0.0])


def test_dense_div_sparse_integral_floor_division():
    d = _dense([7, -7, 9], INT)
    d /= HashVector.from_values([2, 2, 3], INT)
    assert d.kind is INT
    np.testing.assert_array_equal(d.values(), [3, -4, 3])


def test_dense_div_sparse_floating():
    d = _dense([1.0, 3.0], FLOAT)
    d /= HashVector.from_values([2.0, 4.0], FLOAT)
    np.testing.assert_allclose(d.values(), [0.5, 0.75])
    assert d.data.dtype == np.float32


def test_dense_assign_sparse():
    d = _dense([9, 9, 9], LONG)
    d.assign(_sparse(3, [(2, 4)], LONG))
    np.testing.assert_array_equal(d.values(), [0, 0, 4])


def test_dense_mod_and_pow_sparse():
    d = _dense([7, 8, 9], LONG)
    d %= HashVector.from_values([4, 3, 5], LONG)
    np.testing.assert_array_equal(d.values(), [3, 2, 4])
    d **= HashVector.from_values([2, 0, 1], LONG)
    np.testing.assert_array_equal(d.values(), [9, 1, 4])


def test_dense_update_length_mismatch_leaves_dense_untouched():
    d = _dense([1.0, 2.0])
    with pytest.raises(DimensionMismatchError):
        d += _sparse(3, [(0, 1.0)])
    with pytest.raises(ValueError):
        apply_update(OpKind.MUL_SCALAR, d, _sparse(1, []))
    np.testing.assert_array_equal(d.values(), [1.0, 2.0])


@pytest.mark.parametrize("kind", [INT, LONG, BIGINT], ids=lambda k: k.name)
@pytest.mark.parametrize("op", [OpKind.DIV, OpKind.MOD], ids=lambda o: o.name)
def test_integral_division_by_inactive_slot_leaves_dense_untouched(op, kind):
    d = _dense([4, 6, 8], kind)
    s = _sparse(3, [(0, 2), (1, 3)], kind)  # index 2 reads as zero
    with pytest.raises(ZeroDivisionError):
        apply_update(op, d, s)
    assert list(d) == [4, 6, 8]
    with pytest.raises(ZeroDivisionError):
        apply_binary(op, d, s)


@pytest.mark.parametrize("kind", [INT, LONG, BIGINT], ids=lambda k: k.name)
def test_integral_sparse_division_by_dense_zero(kind):
    s = _sparse(3, [(0, 4)], kind)
    with pytest.raises(ZeroDivisionError):
        s / _dense([1, 0, 1], kind)
    with pytest.raises(ZeroDivisionError):
        s /= _dense([1, 0, 1], kind)
    assert s.active_size == 1
    assert list(s) == [4, 0, 0]


def test_negative_integer_power_leaves_dense_untouched():
    d = _dense([2, 3], INT)
    with pytest.raises(ValueError):
        d **= HashVector.from_values([1, -1], INT)
    np.testing.assert_array_equal(d.values(), [2, 3])


def test_bigint_update_exact():
    d = _dense([2 ** 70, 1], BIGINT)
    d += _sparse(2, [(0, 2 ** 70)], BIGINT)
    assert d[0] == 2 ** 71
    assert d[1] == 1


# ---------------------
# DenseVector op HashVector -> DenseVector
# ---------------------
@pytest.mark.parametrize("op", ELEMENTWISE, ids=lambda o: o.name)
def test_pure_dense_ops_do_not_mutate(op):
    d = _dense([4.0, 9.0, 16.0])
    s = HashVector.from_values([2.0, 3.0, 4.0])
    result = apply_binary(op, d, s)
    assert isinstance(result, DenseVector)
    assert result is not d
    np.testing.assert_array_equal(d.values(), [4.0, 9.0, 16.0])
    expected = {
        OpKind.ADD: [6.0, 12.0, 20.0],
        OpKind.SUB: [2.0, 6.0, 12.0],
        OpKind.MUL_SCALAR: [8.0, 27.0, 64.0],
        OpKind.DIV: [2.0, 3.0, 4.0],
        OpKind.SET: [2.0, 3.0, 4.0],
        OpKind.MOD: [0.0, 0.0, 0.0],
        OpKind.POW: [16.0, 729.0, 65536.0],
    }[op]
    np.testing.assert_allclose(result.values(), expected)


def test_pure_from_update_copies_left_operand():
    calls = []

    def update(a, b):
        calls.append(a)
        a[0] = b

    pure = pure_from_update(update)
    d = _dense([1.0, 2.0])
    result = pure(d, 5.0)
    assert calls[0] is result
    assert d[0] == 1.0
    assert result[0] == 5.0


def test_operator_syntax_dense_left():
    d = _dense([1.0, 2.0, 3.0])
    s = _sparse(3, [(0, 1.0)])
    np.testing.assert_array_equal((d + s).values(), [2.0, 2.0, 3.0])
    np.testing.assert_array_equal((d - s).values(), [0.0, 2.0, 3.0])
    np.testing.assert_array_equal((d * s).values(), [1.0, 0.0, 0.0])


def test_numpy_array_operands_are_wrapped():
    s = _sparse(3, [(1, 2.0)])
    result = np.array([1.0, 1.0, 1.0]) + s
    assert isinstance(result, DenseVector)
    np.testing.assert_array_equal(result.values(), [1.0, 3.0, 1.0])
    result = s + [1.0, 1.0, 1.0]
    assert isinstance(result, DenseVector)
    np.testing.assert_array_equal(result.values(), [1.0, 3.0, 1.0])


# ---------------------
# HashVector op= DenseVector / HashVector op DenseVector
# ---------------------
def test_sparse_add_dense_in_place_activates_every_index():
    s = _sparse(3, [(1, 2.0)])
    s += _dense([1.0, 0.0, 0.0])
    assert list(s) == [1.0, 2.0, 0.0]
    assert s.active_size == 3


def test_sparse_ops_dense_produce_dense():
    s = _sparse(4, [(0, 8), (3, 5)], LONG)
    d = _dense([2, 1, 1, 3], LONG)
    cases = {
        OpKind.ADD: [10, 1, 1, 8],
        OpKind.SUB: [6, -1, -1, 2],
        OpKind.MUL_SCALAR: [16, 0, 0, 15],
        OpKind.DIV: [4, 0, 0, 1],
        OpKind.SET: [2, 1, 1, 3],
        OpKind.MOD: [0, 0, 0, 2],
        OpKind.POW: [64, 0, 0, 125],
    }
    for op, expected in cases.items():
        result = apply_binary(op, s, d)
        assert isinstance(result, DenseVector), op
        assert result.kind is LONG
        np.testing.assert_array_equal(result.values(), expected, err_msg=op.name)
    assert s.active_size == 2


def test_sparse_update_dense_every_op():
    for op in ELEMENTWISE:
        s = _sparse(2, [(0, 6)], LONG)
        apply_update(op, s, _dense([3, 2], LONG))
        expected = apply_binary(op, _sparse(2, [(0, 6)], LONG), _dense([3, 2], LONG))
        assert list(s) == list(expected), op


def test_sparse_update_length_mismatch():
    s = _sparse(2, [(0, 6.0)])
    with pytest.raises(DimensionMismatchError):
        s -= _dense([1.0])
    assert s.active_size == 1
    with pytest.raises(DimensionMismatchError):
        s + _dense([1.0, 2.0, 3.0])


def test_mixed_kinds_rejected():
    with pytest.raises(UnsupportedOperatorError):
        _dense([1.0]) + _sparse(1, [(0, 1)], LONG)


def test_complex_mod_unsupported_via_operator():
    with pytest.raises(UnsupportedOperatorError):
        _dense([1j], COMPLEX) % _sparse(1, [(0, 1j)], COMPLEX)


def test_bigint_pow_unsupported_via_operator():
    with pytest.raises(TypeError):
        _sparse(1, [(0, 2)], BIGINT) ** _dense([2], BIGINT)


def test_dense_dense_not_registered():
    with pytest.raises(UnsupportedOperatorError):
        _dense([1.0]) + _dense([1.0])


# ---------------------
# Dot product
# ---------------------
@pytest.mark.parametrize("kind", ELEMENT_KINDS, ids=lambda k: k.name)
def test_dot_commutes(kind):
    d = _dense([1, 2, 3, 4], kind)
    s = _sparse(4, [(1, 5), (3, 2)], kind)
    assert dot(d, s) == dot(s, d) == 18
    assert d @ s == s @ d == 18


def test_dot_starts_from_zero_of_kind():
    result = dot(_dense([1, 2], INT), HashVector.zeros(2, INT))
    assert result == 0
    assert isinstance(result, np.int32)
    assert dot(_dense([1j], COMPLEX), HashVector.zeros(1, COMPLEX)) == 0j


def test_dot_complex_is_not_conjugated():
    assert dot(_dense([1j], COMPLEX), _sparse(1, [(0, 1j)], COMPLEX)) == -1


def test_dot_bigint_exact():
    big = 2 ** 80
    assert dot(_dense([big, 1], BIGINT), _sparse(2, [(0, big), (1, 3)], BIGINT)) == big * big + 3


def test_dot_on_strided_dense():
    d = DenseVector(np.arange(10, dtype=np.int64), offset=9, stride=-3)  # 9, 6, 3, 0
    s = _sparse(4, [(0, 1), (2, 2)], LONG)
    assert dot(d, s) == 15
    assert dot(s, d) == 15


def test_dot_is_bilinear():
    d = _dense([1.0, -2.0, 0.5])
    s1 = _sparse(3, [(0, 2.0), (2, 4.0)])
    s2 = _sparse(3, [(1, 3.0)])
    combined = _sparse(3, [(0, 2.0), (1, 3.0), (2, 4.0)])
    assert dot(d, combined) == pytest.approx(dot(d, s1) + dot(d, s2))
    assert dot(d, s1 * 3.0) == pytest.approx(3.0 * dot(d, s1))


def test_dot_includes_non_zero_default():
    s = HashVector(OpenAddressHashArray(3, DOUBLE, default=1.0))
    d = _dense([1.0, 1.0, 1.0])
    assert dot(d, s) == dot(s, d) == 3.0
    s[2] = 4.0
    assert dot(d, s) == dot(s, d) == 6.0


def test_dot_length_mismatch():
    with pytest.raises(DimensionMismatchError):
        dot(_dense([1.0, 2.0]), _sparse(3, []))
    with pytest.raises(DimensionMismatchError):
        dot(_sparse(3, []), _dense([1.0, 2.0]))


# ---------------------
# Scaling and negation
# ---------------------
def test_scale_sparse_by_scalar():
    s = _sparse(4, [(1, 2.0), (3, -1.0)])
    for result in (s * 3.0, 3.0 * s):
        assert isinstance(result, HashVector)
        assert result.active_size == 2
        assert list(result) == [0.0, 6.0, 0.0, -3.0]
    assert list(s / 2.0) == [0.0, 1.0, 0.0, -0.5]
    assert list(s) == [0.0, 2.0, 0.0, -1.0]


def test_integral_scale_rejects_truncating_scalar():
    s = _sparse(2, [(0, 3)], INT)
    with pytest.raises(TypeError):
        s * 2.5
    with pytest.raises(TypeError):
        _sparse(2, [(0, 3)], BIGINT) / 1.5
    assert list(s * 2.0) == [6, 0]
    assert list(s / 2) == [1, 0]


def test_in_place_scalar_scale_rebinds():
    s = _sparse(2, [(0, 2.0)])
    original = s
    s *= 2.0
    assert s is not original
    assert list(s) == [4.0, 0.0]
    assert list(original) == [2.0, 0.0]


@pytest.mark.parametrize("kind", ELEMENT_KINDS, ids=lambda k: k.name)
def test_negate_every_kind(kind):
    s = _sparse(5, [(0, 3), (4, 1)], kind)
    n = negate(s)
    assert isinstance(n, HashVector)
    assert n.kind is kind
    assert list(n) == [-3, 0, 0, 0, -1]
    assert sorted(n.active_keys_iterator()) == [0, 4]
    assert -s == n


def test_negated_vector_is_independent():
    s = _sparse(2, [(0, 1.0)])
    n = -s
    n[1] = 5.0
    assert s[1] == 0.0


def test_dense_negation_not_registered():
    with pytest.raises(UnsupportedOperatorError):
        -_dense([1.0])


# ---------------------
# Copy
# ---------------------
def test_copy_vector_both_types():
    s = _sparse(3, [(1, 1.0)])
    s2 = copy_vector(s)
    s2[1] = 2.0
    assert s[1] == 1.0
    d = DenseVector(np.arange(6.0), stride=2)
    d2 = copy_vector(d)
    assert d2 == d
    d2[0] = 100.0
    assert d[0] == 0.0


# ---------------------
# Mapping
# ---------------------
def test_map_all_versus_active():
    s = _sparse(4, [(1, 2.0)])
    plus_one = lambda x: x + 1.0  # noqa: E731
    everywhere = map_values(s, plus_one)
    active_only = map_values(s, plus_one, active=True)
    assert everywhere.active_size == 4
    assert list(everywhere) == [1.0, 3.0, 1.0, 1.0]
    assert active_only.active_size == 1
    assert list(active_only) == [0.0, 3.0, 0.0, 0.0]


def test_map_identity_agrees_on_active_slots():
    s = _sparse(5, [(0, 4.0), (3, -2.0)])
    everywhere = map_values(s, lambda x: x)
    active_only = map_values(s, lambda x: x, active=True)
    for i, v in s.active_iterator():
        assert everywhere[i] == active_only[i] == v
    assert everywhere == active_only == s
    assert everywhere.active_size == 5
    assert active_only.active_size == 2


def test_map_changes_kind():
    s = _sparse(3, [(2, 3)], LONG)
    halves = map_values(s, lambda x: x / 2, kind=DOUBLE)
    assert halves.kind is DOUBLE
    assert list(halves) == [0.0, 0.0, 1.5]


def test_map_pairs_receives_index():
    s = _sparse(3, [(1, 5)], LONG)
    everywhere = map_pairs(s, lambda i, x: i * 10 + x)
    active_only = map_pairs(s, lambda i, x: i * 10 + x, active=True)
    assert list(everywhere) == [0, 15, 20]
    assert list(active_only) == [0, 15, 0]
    assert active_only.active_size == 1


def test_map_on_source_does_not_mutate():
    s = _sparse(3, [(1, 5)], LONG)
    map_values(s, lambda x: x * 2)
    map_pairs(s, lambda i, x: x * 2, active=True)
    assert s.active_size == 1
    assert list(s) == [0, 5, 0]


# ---------------------
# Zip-map
# ---------------------
def test_zip_map_every_index():
    a = _sparse(3, [(0, 1.0)])
    b = _sparse(3, [(2, 4.0)])
    result = zip_map_values(a, b, lambda x, y: x + y + 1.0)
    assert isinstance(result, HashVector)
    assert list(result) == [2.0, 1.0, 5.0]
    assert result.active_size == 3


def test_zip_map_kind_and_mismatch():
    a = _sparse(2, [(0, 3)], LONG)
    b = _sparse(2, [(0, 2)], LONG)
    assert list(zip_map_values(a, b, lambda x, y: x / y if y else 0.0, kind=DOUBLE)) == [1.5, 0.0]
    with pytest.raises(DimensionMismatchError):
        zip_map_values(a, _sparse(3, [], LONG), max)


# ---------------------
# Zero-length operands
# ---------------------
@pytest.mark.parametrize("op", ELEMENTWISE, ids=lambda o: o.name)
def test_zero_length_elementwise(op):
    d = DenseVector.zeros(0)
    s = HashVector.zeros(0)
    assert apply_binary(op, d, s).length == 0
    assert apply_binary(op, s, d).length == 0
    apply_update(op, d, s)
    apply_update(op, s, d)
    assert d.length == 0
    assert s.length == 0


def test_zero_length_other_ops():
    d = DenseVector.zeros(0, LONG)
    s = HashVector.zeros(0, LONG)
    assert dot(d, s) == 0
    assert dot(s, d) == 0
    assert negate(s).length == 0
    assert (s * 2).length == 0
    assert map_values(s, lambda x: x + 1).length == 0
    assert map_pairs(s, lambda i, x: i, active=True).length == 0
    assert zip_map_values(s, s.copy(), lambda x, y: x).length == 0
