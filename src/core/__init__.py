"""
Core: доменные модели, fixed-point примитивы и таксономия ошибок.

Модули ядра не зависят от внешних систем (диспетчер, хранилище, сеть)
и не выполняют I/O.
"""
