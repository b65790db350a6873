"""
Построение дерева Хаффмана по частотам символов и таблицы кодов по дереву.
Частые символы получают более короткие коды.

Порядок разрешения равных весов фиксирован: листья добавляются в очередь
по возрастанию символа, а среди узлов с одинаковым весом первым извлекается
тот, что был добавлен раньше (FIFO). Поэтому одинаковый вход всегда даёт
одинаковые коды.
"""

import heapq
from collections import Counter
from itertools import count
from typing import Dict, Iterable, Optional

from errors import BuildFailure, MalformedContainer


PASS_THROUGH_CODE = '0'


class HuffmanNode:
    def __init__(self, symbol=None, freq: int = 0,
                 left: Optional['HuffmanNode'] = None,
                 right: Optional['HuffmanNode'] = None):
        self.symbol = symbol
        self.freq = freq
        self.left = left
        self.right = right
        self.is_leaf = False

    @classmethod
    def leaf(cls, symbol, freq: int = 0) -> 'HuffmanNode':
        node = cls(symbol=symbol, freq=freq)
        node.is_leaf = True
        return node

    def has_children(self) -> bool:
        return self.left is not None or self.right is not None


def count_frequencies(symbols: Iterable) -> Dict:
    return dict(Counter(symbols))


class HuffmanTree:
    def __init__(self):
        self.root: Optional[HuffmanNode] = None
        self.codes: Dict = {}
        self.pass_through = False

    @property
    def is_empty(self) -> bool:
        return not self.codes

    def build(self, frequencies: Dict) -> 'HuffmanTree':
        self.root = None
        self.codes = {}
        self.pass_through = False

        if not frequencies:
            return self

        if len(frequencies) == 1:
            # Одному символу нечего различать: фиксированный код без дерева
            (symbol,) = frequencies
            self.codes[symbol] = PASS_THROUGH_CODE
            self.pass_through = True
            return self

        order = count()
        heap = [(freq, next(order), HuffmanNode.leaf(symbol, freq))
                for symbol, freq in sorted(frequencies.items())]
        heapq.heapify(heap)

        while len(heap) > 1:
            left_freq, _, left = heapq.heappop(heap)
            right_freq, _, right = heapq.heappop(heap)

            parent = HuffmanNode(freq=left_freq + right_freq,
                                 left=left, right=right)
            heapq.heappush(heap, (parent.freq, next(order), parent))

        self.root = heap[0][2]
        self._generate_codes()
        return self

    def _generate_codes(self):
        self.codes.clear()

        def traverse(node: Optional[HuffmanNode], code: str):
            if node is None:
                raise BuildFailure("Internal node is missing a child")

            if node.is_leaf:
                if not code:
                    raise BuildFailure("Leaf at the root of a multi-symbol tree")
                self.codes[node.symbol] = code
                return

            traverse(node.left, code + '0')
            traverse(node.right, code + '1')

        traverse(self.root, '')

    @staticmethod
    def from_codes(codes: Dict) -> 'HuffmanTree':
        """
        Восстанавливает дерево только по таблице кодов, без частот.
        Конфликтующие или не префиксные коды дают MalformedContainer.
        """
        tree = HuffmanTree()
        tree.codes = dict(codes)

        if not codes:
            return tree

        if len(codes) == 1:
            (code,) = codes.values()
            if code != PASS_THROUGH_CODE:
                raise MalformedContainer(
                    f"Single-symbol table must use code '0', got {code!r}")
            tree.pass_through = True
            return tree

        tree.root = HuffmanNode()
        for symbol, code in codes.items():
            HuffmanTree._insert(tree.root, symbol, code)

        return tree

    @staticmethod
    def _insert(node: HuffmanNode, symbol, code: str):
        if not code:
            raise MalformedContainer(f"Empty code for symbol {symbol!r}")

        for bit in code:
            if node.is_leaf:
                raise MalformedContainer(
                    f"Code {code!r} passes through an existing leaf")

            if bit == '0':
                if node.left is None:
                    node.left = HuffmanNode()
                node = node.left
            elif bit == '1':
                if node.right is None:
                    node.right = HuffmanNode()
                node = node.right
            else:
                raise MalformedContainer(f"Invalid bit {bit!r} in code {code!r}")

        if node.is_leaf or node.has_children():
            raise MalformedContainer(f"Code {code!r} conflicts with another code")

        node.symbol = symbol
        node.is_leaf = True


def is_prefix_free(codes: Dict) -> bool:
    ordered = sorted(codes.values())
    for shorter, longer in zip(ordered, ordered[1:]):
        if longer.startswith(shorter):
            return False
    return True
