"""
Static reference snippets appended to the answer context when a query is
about writing contracts or tests. They are added whatever the retrieval
returned, so the model always has one canonical, compiling example.
"""

CONTRACT_TEMPLATE = """
<contract>
use starknet::ContractAddress;

// Define the contract interface
#[starknet::interface]
pub trait IRegistry<TContractState> {
    fn register_data(ref self: TContractState, data: felt252);
    fn update_data(ref self: TContractState, index: u64, new_data: felt252);
    fn get_data(self: @TContractState, index: u64) -> felt252;
    fn get_user_data(self: @TContractState, user: ContractAddress) -> felt252;
}

// Define the contract module
#[starknet::contract]
mod Registry {
    use starknet::{ContractAddress, get_caller_address};
    // Required for interactions with 'Map' and the 'entry' method
    use starknet::storage::{Map, StoragePathEntry};
    // Required for interactions with 'Vec'
    use starknet::storage::{Vec, VecTrait, MutableVecTrait};
    // Required for all storage operations
    use starknet::storage::{StoragePointerReadAccess, StoragePointerWriteAccess};

    #[storage]
    struct Storage {
        data_vector: Vec<felt252>,
        user_data_map: Map<ContractAddress, felt252>,
    }

    // Events derive 'Drop, starknet::Event' and carry the '#[event]' attribute
    #[event]
    #[derive(Drop, starknet::Event)]
    enum Event {
        DataRegistered: DataRegistered,
        DataUpdated: DataUpdated,
    }

    #[derive(Drop, starknet::Event)]
    struct DataRegistered {
        user: ContractAddress,
        data: felt252,
    }

    #[derive(Drop, starknet::Event)]
    struct DataUpdated {
        user: ContractAddress,
        index: u64,
        new_data: felt252,
    }

    #[abi(embed_v0)]
    impl RegistryImpl of super::IRegistry<ContractState> {
        fn register_data(ref self: ContractState, data: felt252) {
            let caller = get_caller_address();
            self.data_vector.append().write(data);
            self.user_data_map.entry(caller).write(data);
            self.emit(Event::DataRegistered(DataRegistered { user: caller, data }));
        }

        fn update_data(ref self: ContractState, index: u64, new_data: felt252) {
            let caller = get_caller_address();
            self.data_vector.at(index).write(new_data);
            self.user_data_map.entry(caller).write(new_data);
            self.emit(Event::DataUpdated(DataUpdated { user: caller, index, new_data }));
        }

        fn get_data(self: @ContractState, index: u64) -> felt252 {
            self.data_vector.at(index).read()
        }

        fn get_user_data(self: @ContractState, user: ContractAddress) -> felt252 {
            self.user_data_map.entry(user).read()
        }
    }
}
</contract>

The content inside the <contract> tag is the default style to follow when writing a contract.
Use full paths for core library imports and always import the storage traits you use.
"""

TEST_TEMPLATE = """
<contract_test>
use registry::{IRegistryDispatcher, IRegistryDispatcherTrait};
use registry::Registry::{DataRegistered, Event};
use snforge_std::{
    declare, ContractClassTrait, DeclareResultTrait, spy_events, EventSpyAssertionsTrait,
    start_cheat_caller_address, stop_cheat_caller_address,
};
use starknet::{ContractAddress, contract_address_const};

fn deploy_contract() -> IRegistryDispatcher {
    let contract = declare("Registry").unwrap().contract_class();
    let (contract_address, _) = contract.deploy(@array![]).unwrap();
    IRegistryDispatcher { contract_address }
}

#[test]
fn test_register_data_emits_event() {
    let dispatcher = deploy_contract();
    let user: ContractAddress = contract_address_const::<'user'>();
    let mut spy = spy_events();

    start_cheat_caller_address(dispatcher.contract_address, user);
    dispatcher.register_data(42);
    stop_cheat_caller_address(dispatcher.contract_address);

    assert(dispatcher.get_data(0) == 42, 'wrong data');
    spy.assert_emitted(
        @array![
            (
                dispatcher.contract_address,
                Event::DataRegistered(DataRegistered { user, data: 42 }),
            ),
        ],
    );
}
</contract_test>

The content inside the <contract_test> tag is the default style to follow when writing tests
with Starknet Foundry (snforge).
"""
