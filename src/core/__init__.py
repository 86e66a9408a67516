"""
Núcleo do VirtualQ - regras do motor de ciclo de vida.

Subpacotes:
- definicoes: Schema Registry, validador estrutural e máquina de estados
- filas: Tenants, filas, funcionários e o índice de posição
- tickets: Lifecycle Manager, itens e histórico de transições
- shared: Exceções, eventos, ports, retry e identificadores

Nada aqui importa Django: os adapters ficam em src/adapters.
"""
