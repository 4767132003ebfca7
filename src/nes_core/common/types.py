"""
共通の型定義を提供するモジュール。
プロジェクト全体で使用される汎用的な型エイリアスや定数を定義します。
"""
WORD_MASK = 0xFFFF

# 6502 の割り込みベクタ
NMI_VECTOR = 0xFFFA
RESET_VECTOR = 0xFFFC
IRQ_VECTOR = 0xFFFE

def read_word(read, address: int) -> int:
    """
    リトルエンディアンの16bit値を読み出します。`read` は 1 バイト読み出し関数です。
    """
    lo = read(address & WORD_MASK)
    hi = read((address + 1) & WORD_MASK)
    return (hi << 8) | lo
